"""One-time code verification and session management."""

import secrets
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from loguru import logger

from agent_bridge.database.base import KeyValueStore
from agent_bridge.exceptions import (
    BadRequestError,
    CodeExpiredError,
    CodeMismatchError,
    NotFoundError,
    NotificationError,
    TooManyAttemptsError,
)
from agent_bridge.models import Session, Turn, VerificationEntry
from agent_bridge.monitoring.prometheus import record_code_issued, record_verification
from agent_bridge.services.notification_service import CODE_EMAIL_SUBJECT, render_code_email
from agent_bridge.utils.locks import KeyedLocks
from agent_bridge.utils.timezone import epoch_now

TOKEN_PREFIX = "tok_"


def generate_code() -> str:
    """Uniform 6-digit code in [100000, 999999]."""
    return str(100000 + secrets.randbelow(900000))


def generate_token() -> str:
    return TOKEN_PREFIX + secrets.token_urlsafe(24)


def normalize_identity(identity: Optional[str]) -> str:
    """Validate and canonicalise an identity (an email address)."""
    value = (identity or "").strip().lower()
    if not value or "@" not in value:
        raise BadRequestError("A valid email address is required")
    return value


@dataclass
class IssuedCode:
    """Result of issuing a code."""

    identity: str
    code: str
    expires_in_seconds: int
    delivered: bool
    fallback: bool
    delivery_id: Optional[str] = None


class VerificationService:
    """Issues and checks one-time codes and owns the session keyspace.

    Stores, the notifier and the clock are injected; ``notifier`` only needs
    an async ``send(to, subject, html)`` returning a delivery id.
    """

    def __init__(
        self,
        codes: KeyValueStore,
        sessions: KeyValueStore,
        histories: KeyValueStore,
        notifier=None,
        code_ttl_seconds: int = 600,
        max_attempts: int = 3,
        session_ttl_seconds: int = 0,
        clock: Callable[[], float] = epoch_now,
    ):
        self.codes = codes
        self.sessions = sessions
        self.histories = histories
        self.notifier = notifier
        self.code_ttl_seconds = code_ttl_seconds
        self.max_attempts = max_attempts
        self.session_ttl_seconds = session_ttl_seconds
        self.clock = clock
        self._locks = KeyedLocks()

    async def issue_code(self, identity: str) -> IssuedCode:
        """Create a fresh code for ``identity``, replacing any live one, and try to deliver it.

        Delivery failure does not prevent issuance; the result is flagged as
        a fallback so the caller can show the code directly.
        """
        identity = normalize_identity(identity)
        code = generate_code()
        entry = VerificationEntry(identity=identity, code=code, issued_at=self.clock())

        async with self._locks.hold(identity):
            # Backend TTL only garbage-collects; expiry is judged against issued_at.
            await self.codes.set(identity, entry.to_dict(), ttl=self.code_ttl_seconds * 2)

        logger.info(f"Verification code issued for {identity}")
        logger.debug(f"Verification code for {identity}: {code}")

        delivered = False
        delivery_id = None
        if self.notifier is not None:
            try:
                delivery_id = await self.notifier.send(
                    identity,
                    CODE_EMAIL_SUBJECT.format(code=code),
                    render_code_email(code, self.code_ttl_seconds),
                )
                delivered = True
            except NotificationError as exc:
                logger.warning(f"Code delivery failed for {identity}, using fallback: {exc.message}")

        record_code_issued(delivered)
        return IssuedCode(
            identity=identity,
            code=code,
            expires_in_seconds=self.code_ttl_seconds,
            delivered=delivered,
            fallback=not delivered,
            delivery_id=delivery_id or None,
        )

    async def verify_code(self, identity: str, code: str) -> Session:
        """Check ``code`` for ``identity`` and open a session on success.

        Raises:
            BadRequestError: Malformed identity
            NotFoundError: No live code for the identity
            CodeExpiredError: Code older than the TTL (entry removed)
            TooManyAttemptsError: Attempt budget spent (entry removed)
            CodeMismatchError: Wrong code (attempt counted, entry kept)
        """
        identity = normalize_identity(identity)
        submitted = (code or "").strip()

        async with self._locks.hold(identity):
            raw = await self.codes.get(identity)
            if raw is None:
                record_verification("not_found")
                raise NotFoundError("No code found. Request new code.")

            entry = VerificationEntry.from_dict(raw)
            now = self.clock()

            if entry.is_expired(now, self.code_ttl_seconds):
                await self.codes.delete(identity)
                record_verification("expired")
                raise CodeExpiredError("Code expired. Request new code.")

            if entry.attempts >= self.max_attempts:
                await self.codes.delete(identity)
                record_verification("too_many_attempts")
                raise TooManyAttemptsError("Too many attempts. Request new code.")

            if not secrets.compare_digest(entry.code.encode(), submitted.encode()):
                entry.attempts += 1
                await self.codes.set(identity, entry.to_dict(), ttl=self.code_ttl_seconds * 2)
                record_verification("mismatch")
                logger.info(f"Code mismatch for {identity}: attempts={entry.attempts}/{self.max_attempts}")
                raise CodeMismatchError(
                    "Invalid code. Try again.",
                    attempts_remaining=max(0, self.max_attempts - entry.attempts),
                )

            await self.codes.delete(identity)
            session = Session(token=generate_token(), identity=identity, created_at=now)
            await self.sessions.set(session.token, session.to_dict())
            await self.histories.set(session.token, [])

        record_verification("success")
        logger.info(f"Session created for {identity}")
        return session

    async def _load_session(self, token: str) -> Optional[Session]:
        raw = await self.sessions.get(token)
        if raw is None:
            return None
        session = Session.from_dict(raw)
        if session.is_expired(self.clock(), self.session_ttl_seconds):
            logger.info(f"Session expired: {token[:8]}...")
            await self.delete_session(token)
            return None
        return session

    async def is_active(self, token: str) -> bool:
        return await self._load_session(token) is not None

    async def get_session(self, token: str) -> Tuple[Session, List[Turn]]:
        session = await self._load_session(token)
        if session is None:
            raise NotFoundError("Session not found")
        history = await self.histories.get(token) or []
        return session, [Turn.from_dict(item) for item in history]

    async def delete_session(self, token: str) -> bool:
        """Remove a session and its history. Unknown tokens are not an error."""
        deleted = await self.sessions.delete(token)
        await self.histories.delete(token)
        if deleted:
            logger.info(f"Session deleted: {token[:8]}...")
        return deleted
