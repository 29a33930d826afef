"""Agent Bridge: one-time code verification and keyword-routed specialist agents."""

__version__ = "3.0.0"
