"""Verification code model."""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class VerificationEntry:
    """A live one-time code bound to an identity.

    At most one entry exists per identity; issuing a new code replaces it.
    """

    identity: str
    code: str
    issued_at: float
    attempts: int = 0

    def age(self, now: float) -> float:
        """Seconds elapsed since the code was issued."""
        return now - self.issued_at

    def is_expired(self, now: float, ttl_seconds: int) -> bool:
        return self.age(now) > ttl_seconds

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerificationEntry":
        return cls(
            identity=data["identity"],
            code=data["code"],
            issued_at=float(data["issued_at"]),
            attempts=int(data.get("attempts", 0)),
        )
