"""Middleware package for Agent Bridge.

This package contains middleware components for request processing,
including correlation ID tracking.
"""

from agent_bridge.middleware.correlation_id import (
    CorrelationIdMiddleware,
    generate_correlation_id,
    extract_correlation_id,
    is_valid_correlation_id,
    CORRELATION_ID_HEADERS,
    RESPONSE_CORRELATION_ID_HEADER,
)

__all__ = [
    "CorrelationIdMiddleware",
    "generate_correlation_id",
    "extract_correlation_id",
    "is_valid_correlation_id",
    "CORRELATION_ID_HEADERS",
    "RESPONSE_CORRELATION_ID_HEADER",
]
