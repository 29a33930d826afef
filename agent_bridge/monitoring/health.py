"""Health check endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Request
from loguru import logger
from redis.exceptions import RedisError

from agent_bridge.services.agent_catalogue import list_categories
from agent_bridge.settings import settings
from agent_bridge.utils.timezone import utcnow

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """Report service status and which collaborators are configured.

    Credentials are reported as presence flags only.
    """
    completion = getattr(request.app.state, "completion_client", None)
    notifier = getattr(request.app.state, "notifier", None)
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "version": settings.app_version,
        "environment": settings.environment,
        "agents": len(list_categories()),
        "model": completion.model if completion is not None else settings.completion_model,
        "completion_configured": completion.configured if completion is not None else settings.completion_configured,
        "email_configured": notifier.configured if notifier is not None else settings.email_configured,
        "store": settings.store_backend.value,
    }


@router.get("/health/detailed")
async def detailed_health_check(request: Request) -> Dict[str, Any]:
    """Health check that also probes the store backend."""
    health_status = await health_check(request)
    health_status["checks"] = {}

    redis_client = getattr(request.app.state, "redis_client", None)
    if redis_client is None:
        health_status["checks"]["store"] = {
            "status": "healthy",
            "message": "In-memory store",
        }
        return health_status

    try:
        await redis_client.ping()
        health_status["checks"]["store"] = {
            "status": "healthy",
            "message": "Redis connection successful",
        }
    except (RedisError, OSError) as e:
        logger.warning(f"Redis health check failed: {type(e).__name__}")
        health_status["checks"]["store"] = {
            "status": "unhealthy",
            "message": f"Redis connection failed: {type(e).__name__}",
        }
        health_status["status"] = "unhealthy"

    return health_status
