"""Correlation ID middleware for request tracking.

This middleware ensures every request has a correlation ID so the log
lines of one chat or verification exchange can be tied together.
"""

import re
import uuid
from typing import Callable, Optional

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

from agent_bridge.settings.context import (
    clear_correlation_id,
    set_correlation_id,
)


# Supported correlation ID header names (in order of precedence)
CORRELATION_ID_HEADERS = [
    "X-Correlation-ID",
    "X-Request-ID",
    "Request-ID",
]

# Response header name
RESPONSE_CORRELATION_ID_HEADER = "X-Correlation-ID"

UUID_PATTERN = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$',
    re.IGNORECASE
)


def generate_correlation_id() -> str:
    """Generate a new correlation ID using UUID v4."""
    return str(uuid.uuid4())


def is_valid_correlation_id(correlation_id: str) -> bool:
    """Validate that a correlation ID is a valid UUID.

    Args:
        correlation_id: The correlation ID to validate

    Returns:
        True if valid UUID format, False otherwise
    """
    if not correlation_id or not isinstance(correlation_id, str):
        return False
    return UUID_PATTERN.match(correlation_id.strip()) is not None


def extract_correlation_id(request: Request) -> Optional[str]:
    """Extract correlation ID from request headers.

    Tries multiple header names in order of precedence and ignores
    values that are not UUIDs.

    Args:
        request: The incoming request

    Returns:
        The normalised correlation ID if found and valid, None otherwise
    """
    for header_name in CORRELATION_ID_HEADERS:
        correlation_id = request.headers.get(header_name)
        if not correlation_id:
            continue
        if is_valid_correlation_id(correlation_id):
            return correlation_id.strip().lower()
        logger.warning(
            f"Invalid correlation ID format in header {header_name}. "
            "Expected UUID format. Generating new ID."
        )
    return None


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware to handle correlation ID for request tracking.

    This middleware:
    1. Extracts correlation ID from request headers (if present)
    2. Generates a new correlation ID if not present or invalid
    3. Stores correlation ID in async-safe context
    4. Injects correlation ID into response headers
    5. Cleans up context after request completion
    """

    def __init__(self, app, header_name: str = RESPONSE_CORRELATION_ID_HEADER):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> StarletteResponse:
        correlation_id = extract_correlation_id(request) or generate_correlation_id()
        set_correlation_id(correlation_id)

        logger.info(
            f"{request.method} {request.url.path} - "
            f"Client: {request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)
            response.headers[self.header_name] = correlation_id
            logger.info(f"Response status: {response.status_code}")
            return response

        except Exception as e:
            logger.error(f"Error processing request: {type(e).__name__}")
            raise

        finally:
            clear_correlation_id()

