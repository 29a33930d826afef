"""Prometheus monitoring configuration."""

import time
from typing import Callable, Optional

from fastapi import Response
from fastapi.routing import APIRoute
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

# ========================================
# HTTP Request Metrics
# ========================================
REQUEST_COUNT = Counter(
    "agent_bridge_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"]
)

REQUEST_DURATION = Histogram(
    "agent_bridge_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0)
)

# ========================================
# Agent Call Metrics
# ========================================
AGENT_CALLS_TOTAL = Counter(
    "agent_bridge_agent_calls_total",
    "Total agent calls by category, method, and status",
    ["agent_type", "method", "status"]
)

AGENT_ERRORS_TOTAL = Counter(
    "agent_bridge_agent_errors_total",
    "Total agent errors by category and error kind",
    ["agent_type", "error_kind"]
)

AGENT_CHAIN_LENGTH = Histogram(
    "agent_bridge_agent_chain_length",
    "Number of steps executed per chain",
    buckets=(1, 2, 3, 4, 5, 7, 10, 15, 20)
)

# ========================================
# Completion API Metrics
# ========================================
COMPLETION_API_CALLS = Counter(
    "agent_bridge_completion_api_calls_total",
    "Total completion API calls",
    ["model", "status"]
)

COMPLETION_RESPONSE_TIME = Histogram(
    "agent_bridge_completion_response_time_seconds",
    "Completion API response time in seconds",
    ["model"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0, 30.0, 60.0, 120.0)
)

COMPLETION_TOKENS_USED = Counter(
    "agent_bridge_completion_tokens_used_total",
    "Total tokens used by the completion API",
    ["model", "token_type"]  # token_type: prompt, completion, total
)

# ========================================
# Verification & Delivery Metrics
# ========================================
VERIFICATION_OUTCOMES = Counter(
    "agent_bridge_verification_outcomes_total",
    "Verification attempts by outcome",
    ["outcome"]  # success, not_found, expired, too_many_attempts, mismatch
)

CODES_ISSUED = Counter(
    "agent_bridge_codes_issued_total",
    "Verification codes issued",
    ["delivery"]  # delivered, fallback
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware for Prometheus metrics collection."""

    async def dispatch(self, request: Request, call_next: Callable) -> StarletteResponse:
        """Process request and collect metrics."""
        start_time = time.time()

        response = await call_next(request)

        # Route is resolved during call_next; unmatched paths keep the raw URL
        route = request.scope.get("route")
        if route and isinstance(route, APIRoute):
            endpoint = route.path
        else:
            endpoint = request.url.path

        duration = time.time() - start_time

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code
        ).inc()

        REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint
        ).observe(duration)

        return response


# ========================================
# Metrics Endpoint
# ========================================
def get_metrics() -> Response:
    """Get Prometheus metrics."""
    return Response(
        generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# ========================================
# Recording Helpers
# ========================================
def record_agent_call(agent_type: str, method: str, status: str = "success"):
    """Record agent call metrics."""
    AGENT_CALLS_TOTAL.labels(
        agent_type=agent_type,
        method=method,
        status=status
    ).inc()


def record_agent_error(agent_type: str, error_kind: str):
    """Record agent error metrics."""
    AGENT_ERRORS_TOTAL.labels(
        agent_type=agent_type,
        error_kind=error_kind
    ).inc()


def record_agent_chain(step_count: int):
    """Record how many steps a chain executed."""
    AGENT_CHAIN_LENGTH.observe(step_count)


def record_completion_call(
    model: str,
    status: str,
    duration: float,
    prompt_tokens: Optional[int] = None,
    completion_tokens: Optional[int] = None,
    total_tokens: Optional[int] = None
):
    """Record completion API call metrics."""
    COMPLETION_API_CALLS.labels(model=model, status=status).inc()
    COMPLETION_RESPONSE_TIME.labels(model=model).observe(duration)

    if prompt_tokens is not None:
        COMPLETION_TOKENS_USED.labels(model=model, token_type="prompt").inc(prompt_tokens)
    if completion_tokens is not None:
        COMPLETION_TOKENS_USED.labels(model=model, token_type="completion").inc(completion_tokens)
    if total_tokens is not None:
        COMPLETION_TOKENS_USED.labels(model=model, token_type="total").inc(total_tokens)


def record_verification(outcome: str):
    """Record the outcome of a verify-code attempt."""
    VERIFICATION_OUTCOMES.labels(outcome=outcome).inc()


def record_code_issued(delivered: bool):
    """Record a code issuance and whether email delivery succeeded."""
    CODES_ISSUED.labels(delivery="delivered" if delivered else "fallback").inc()
