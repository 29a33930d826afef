"""Application settings package."""

from agent_bridge.settings.settings import settings

__all__ = ["settings"]
