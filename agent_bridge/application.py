"""FastAPI application factory."""

import json
import logging

import orjson
import sentry_sdk
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from loguru import logger
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from starlette.middleware.base import BaseHTTPMiddleware

from agent_bridge.lifespan import lifespan_setup
from agent_bridge.middleware import CorrelationIdMiddleware
from agent_bridge.monitoring.health import router as health_router
from agent_bridge.monitoring.prometheus import PrometheusMiddleware, get_metrics
from agent_bridge.routes.router import api_router
from agent_bridge.settings import settings
from agent_bridge.settings.context import get_correlation_id
from agent_bridge.settings.log import configure_logging


class ORJSONResponse(Response):
    """JSON response rendered with orjson."""

    media_type = "application/json"

    def render(self, content: any) -> bytes:  # noqa: ANN001
        return orjson.dumps(content, option=orjson.OPT_SERIALIZE_DATACLASS)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        if "server" in response.headers:
            del response.headers["server"]

        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to limit request body size."""

    def __init__(self, app, max_size: int):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request, call_next):
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                size = int(content_length)
            except ValueError:
                size = 0
            if size > self.max_size:
                return Response(
                    content='{"detail": "Request body too large"}',
                    status_code=413,
                    media_type="application/json",
                )

        return await call_next(request)


def _json_safe_errors(errors) -> list:
    """Stringify any validation error field that is not JSON serializable."""
    sanitized_errors = []
    for error in errors:
        sanitized_error = {}
        for key, value in error.items():
            try:
                json.dumps(value)
                sanitized_error[key] = value
            except (TypeError, ValueError):
                sanitized_error[key] = str(value)
        sanitized_errors.append(sanitized_error)
    return sanitized_errors


def get_app() -> FastAPI:
    """
    Get FastAPI application.

    This is the main constructor of an application.

    :return: application.
    """
    configure_logging()

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=settings.sentry_sample_rate,
            environment=settings.environment.value,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                LoggingIntegration(
                    level=logging.getLevelName(settings.log_level.value),
                    event_level=logging.ERROR,
                ),
            ],
        )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan_setup,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=f"{settings.api_prefix}/openapi.json",
        default_response_class=ORJSONResponse,
    )

    # Add Correlation ID middleware (before Prometheus middleware)
    app.add_middleware(CorrelationIdMiddleware)

    if settings.prometheus_enabled:
        app.add_middleware(PrometheusMiddleware)

    cors_origins = settings.cors_origin_list()
    if "*" in cors_origins and settings.cors_allow_credentials:
        logger.warning(
            "SECURITY WARNING: CORS is configured with allow_origins=['*'] and "
            "allow_credentials=True. Consider explicitly whitelisting allowed origins."
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=[
            "Origin",
            "Accept",
            "Content-Type",
            "Authorization",
            "X-Requested-With",
            "X-Correlation-ID",
        ],
        expose_headers=["X-Correlation-ID", "Retry-After"],
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.max_request_size_bytes)

    app.include_router(router=api_router, prefix=settings.api_prefix)
    app.include_router(router=health_router, prefix=settings.api_prefix, tags=["monitoring"])

    if settings.prometheus_enabled:
        app.add_api_route("/metrics", get_metrics, methods=["GET"], include_in_schema=False)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "correlation_id": get_correlation_id(),
            },
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request, exc):
        return ORJSONResponse(
            status_code=422,
            content={
                "detail": _json_safe_errors(exc.errors()),
                "correlation_id": get_correlation_id(),
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        logger.opt(exception=exc).error(f"Unhandled exception: {type(exc).__name__}")
        return ORJSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "correlation_id": get_correlation_id(),
            },
        )

    return app
