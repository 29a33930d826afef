"""Verification code API routes."""

from asyncio import Lock
from collections import deque
from datetime import datetime, timedelta
from typing import Deque, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from loguru import logger

from agent_bridge.exceptions import BadRequestError, NotFoundError, VerificationError
from agent_bridge.schemas.auth import (
    SendCodeRequest,
    SendCodeResponse,
    SessionPayload,
    VerificationErrorDetail,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from agent_bridge.routes.dependencies import get_verification_service
from agent_bridge.services.verification_service import VerificationService
from agent_bridge.settings import settings

router = APIRouter()

AUTH_RATE_LIMIT_WINDOW_MINUTE = 60  # seconds
AUTH_RATE_LIMIT_WINDOW_HOUR = 3600  # seconds
AUTH_RATE_LIMIT_SWEEP_THRESHOLD = 1000  # tracked keys before stale buckets are swept

_auth_rate_limit_store: Dict[str, Deque[datetime]] = {}
_auth_rate_limit_lock = Lock()


def reset_auth_rate_limits() -> None:
    _auth_rate_limit_store.clear()


def _sweep_stale_buckets(now: datetime) -> None:
    """Drop buckets whose newest request is outside the hourly window."""
    stale = [
        key
        for key, bucket in _auth_rate_limit_store.items()
        if not bucket or (now - bucket[-1]).total_seconds() > AUTH_RATE_LIMIT_WINDOW_HOUR
    ]
    for key in stale:
        del _auth_rate_limit_store[key]


async def _enforce_auth_rate_limit(request: Request, identifier: Optional[str] = None) -> None:
    """Enforce rate limiting on code endpoints.

    Args:
        request: FastAPI request object
        identifier: Optional identity for per-address limiting
    """
    client_ip = request.client.host if request.client else "unknown"
    rate_limit_key = f"{client_ip}:{identifier.strip().lower()}" if identifier else client_ip
    per_minute = settings.auth_rate_limit_per_minute
    per_hour = settings.auth_rate_limit_per_hour

    now = datetime.utcnow()

    async with _auth_rate_limit_lock:
        if len(_auth_rate_limit_store) >= AUTH_RATE_LIMIT_SWEEP_THRESHOLD:
            _sweep_stale_buckets(now)

        bucket = _auth_rate_limit_store.setdefault(rate_limit_key, deque())

        while bucket and (now - bucket[0]).total_seconds() > AUTH_RATE_LIMIT_WINDOW_HOUR:
            bucket.popleft()

        minute_ago = now - timedelta(seconds=AUTH_RATE_LIMIT_WINDOW_MINUTE)
        requests_last_minute = sum(1 for ts in bucket if ts > minute_ago)
        requests_last_hour = len(bucket)

        if requests_last_minute >= per_minute:
            logger.warning(
                f"Auth rate limit exceeded (per minute): {rate_limit_key}, "
                f"attempts={requests_last_minute}/{per_minute}"
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many verification attempts. Please wait before trying again.",
                headers={"Retry-After": str(AUTH_RATE_LIMIT_WINDOW_MINUTE)},
            )

        if requests_last_hour >= per_hour:
            logger.warning(
                f"Auth rate limit exceeded (per hour): {rate_limit_key}, "
                f"attempts={requests_last_hour}/{per_hour}"
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many verification attempts. Please wait before trying again.",
                headers={"Retry-After": str(AUTH_RATE_LIMIT_WINDOW_HOUR)},
            )

        bucket.append(now)


def _verification_http_error(exc: Exception) -> HTTPException:
    detail = VerificationErrorDetail(
        error=getattr(exc, "message", "") or "Verification failed",
        kind=getattr(exc, "kind", "verification_failed"),
        attempts_remaining=getattr(exc, "attempts_remaining", None),
    )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail.to_detail())


@router.post("/send-code", response_model=SendCodeResponse, response_model_exclude_none=True)
async def send_code(
    request: Request,
    body: SendCodeRequest,
    service: VerificationService = Depends(get_verification_service),
) -> SendCodeResponse:
    """Issue a one-time code and email it to the identity."""
    await _enforce_auth_rate_limit(request, body.email)

    try:
        issued = await service.issue_code(body.email)
    except BadRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    reveal = settings.reveal_code or issued.fallback
    if issued.delivered:
        message = "Code sent to your email!"
    else:
        message = "Email delivery failed. Use this code:"

    return SendCodeResponse(
        success=True,
        message=message,
        code=issued.code if reveal else None,
        display=reveal,
        fallback=issued.fallback,
        expires_in=issued.expires_in_seconds,
        email_id=issued.delivery_id,
    )


@router.post("/verify-code", response_model=VerifyCodeResponse)
async def verify_code(
    request: Request,
    body: VerifyCodeRequest,
    service: VerificationService = Depends(get_verification_service),
) -> VerifyCodeResponse:
    """Exchange a valid code for a session token."""
    await _enforce_auth_rate_limit(request, body.email)

    try:
        session = await service.verify_code(body.email, body.code)
    except (BadRequestError, NotFoundError, VerificationError) as e:
        raise _verification_http_error(e)

    return VerifyCodeResponse(
        success=True,
        message="Welcome to Open Claw Enterprise!",
        session=SessionPayload(**session.to_public()),
    )
