"""Session and conversation history models."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from agent_bridge.utils.timezone import epoch_to_iso


@dataclass
class Session:
    """A verified identity's session, keyed by an opaque token."""

    token: str
    identity: str
    created_at: float

    def is_expired(self, now: float, ttl_seconds: int) -> bool:
        """Whether the session outlived its TTL. A TTL of 0 never expires."""
        if ttl_seconds <= 0:
            return False
        return now - self.created_at > ttl_seconds

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        return cls(
            token=data["token"],
            identity=data["identity"],
            created_at=float(data["created_at"]),
        )

    def to_public(self) -> Dict[str, Any]:
        """Client-facing representation."""
        return {
            "token": self.token,
            "email": self.identity,
            "created_at": epoch_to_iso(self.created_at),
        }


@dataclass
class Turn:
    """One message of a conversation."""

    role: str  # "user" | "assistant"
    content: str
    timestamp: float
    agent: Optional[str] = None

    @property
    def speaker(self) -> str:
        return "User" if self.role == "user" else "Assistant"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Turn":
        return cls(
            role=data["role"],
            content=data["content"],
            timestamp=float(data["timestamp"]),
            agent=data.get("agent"),
        )

    def to_public(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "content": self.content,
            "agent": self.agent,
            "timestamp": epoch_to_iso(self.timestamp),
        }


def trim_history(turns: List[Turn], limit: int) -> List[Turn]:
    """Keep only the most recent ``limit`` turns, in their original order."""
    if limit <= 0:
        return []
    if len(turns) <= limit:
        return list(turns)
    return list(turns[-limit:])
