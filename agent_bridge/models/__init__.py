"""In-memory data models package."""

from agent_bridge.models.verification import VerificationEntry
from agent_bridge.models.sessions import Session, Turn, trim_history

__all__ = [
    "VerificationEntry",
    "Session",
    "Turn",
    "trim_history",
]
