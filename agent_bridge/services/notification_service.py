"""Email delivery through the Resend REST API."""

from typing import Optional

import httpx
from loguru import logger

from agent_bridge.exceptions import NotificationError
from agent_bridge.settings.settings import Settings


CODE_EMAIL_SUBJECT = "Your Open Claw Code: {code}"

CODE_EMAIL_TEMPLATE = """\
<div style="background:#0a0a0a; color:#dc2626; padding:40px; text-align:center; \
border:3px solid #dc2626; font-family:Arial; border-radius:10px;">
  <div style="font-size:16px; color:#666; margin-bottom:20px;">OPEN CLAW ENTERPRISE</div>
  <div style="font-size:60px; font-weight:bold; letter-spacing:10px;">{code}</div>
  <div style="font-size:14px; color:#666; margin-top:20px;">
    Your verification code - expires in {minutes} minutes
  </div>
  <div style="font-size:12px; color:#ff6b6b; margin-top:20px;">
    Never share this code with anyone. If you didn't request this, ignore this email.
  </div>
</div>"""


def render_code_email(code: str, ttl_seconds: int) -> str:
    """Render the HTML body of a verification-code email."""
    minutes = max(1, ttl_seconds // 60)
    return CODE_EMAIL_TEMPLATE.format(code=code, minutes=minutes)


class ResendNotifier:
    """Sends transactional email via ``POST {api_url}/emails``.

    The HTTP client is created lazily and reused; pass ``http_client`` to
    supply one (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = "https://api.resend.com",
        sender: str = "onboarding@resend.dev",
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.sender = sender
        self.timeout = timeout
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResendNotifier":
        return cls(
            api_key=settings.resend_api_key,
            api_url=settings.resend_api_url,
            sender=settings.email_from,
            timeout=settings.email_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=5.0),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=20),
            )
        return self._http_client

    async def send(self, to: str, subject: str, html: str) -> str:
        """Deliver one email.

        Args:
            to: Recipient address
            subject: Subject line
            html: HTML body

        Returns:
            The provider's delivery id

        Raises:
            NotificationError: If the provider is not configured, unreachable,
                or rejects the message
        """
        if not self.api_key:
            raise NotificationError("Email provider API key is not configured")

        payload = {"from": self.sender, "to": [to], "subject": subject, "html": html}
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            response = await self._client().post(f"{self.api_url}/emails", json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning(f"Email delivery transport error: {type(exc).__name__}")
            raise NotificationError(f"Email provider unreachable: {type(exc).__name__}") from exc

        if response.status_code >= 400:
            logger.warning(f"Email provider rejected message: status={response.status_code}")
            raise NotificationError(f"Email provider returned HTTP {response.status_code}")

        try:
            delivery_id = response.json().get("id", "")
        except ValueError:
            delivery_id = ""
        logger.info(f"Email delivered: id={delivery_id or 'N/A'}")
        return delivery_id

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
