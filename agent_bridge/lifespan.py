"""Application lifespan management."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from loguru import logger
from redis.exceptions import RedisError

from agent_bridge.database.base import InMemoryKeyValueStore
from agent_bridge.database.redis_client import RedisKeyValueStore, create_redis_client
from agent_bridge.exceptions import ConfigurationError
from agent_bridge.services.ai_service import CompletionClient
from agent_bridge.services.notification_service import ResendNotifier
from agent_bridge.services.routing_service import RoutingService
from agent_bridge.services.verification_service import VerificationService
from agent_bridge.settings import settings
from agent_bridge.settings.settings import StoreBackend

STORE_NAMESPACES = ("verification", "sessions", "histories")


async def _build_stores(app) -> dict:
    """Create one store per namespace on the configured backend."""
    if settings.store_backend == StoreBackend.REDIS:
        redis_client = create_redis_client(settings)
        try:
            await asyncio.wait_for(redis_client.ping(), timeout=15.0)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            await redis_client.aclose()
            raise ConfigurationError(f"Redis store unreachable: {type(e).__name__}") from e
        logger.info("✓ Redis store connected")
        app.state.redis_client = redis_client
        return {
            name: RedisKeyValueStore(redis_client, name, prefix=settings.redis_key_prefix)
            for name in STORE_NAMESPACES
        }

    app.state.redis_client = None
    logger.info("✓ Using in-memory store")
    return {name: InMemoryKeyValueStore(name) for name in STORE_NAMESPACES}


def build_services(app, stores: dict, notifier: ResendNotifier, completion_client: CompletionClient) -> None:
    """Wire services onto ``app.state``."""
    verification_service = VerificationService(
        codes=stores["verification"],
        sessions=stores["sessions"],
        histories=stores["histories"],
        notifier=notifier,
        code_ttl_seconds=settings.code_ttl_seconds,
        max_attempts=settings.max_code_attempts,
        session_ttl_seconds=settings.session_ttl_seconds,
    )
    routing_service = RoutingService(
        completion=completion_client,
        histories=stores["histories"],
        history_limit=settings.history_limit,
        history_window=settings.history_window,
        snippet_chars=settings.history_snippet_chars,
        chain_context_chars=settings.chain_context_chars,
        session_active=verification_service.is_active,
    )
    app.state.stores = stores
    app.state.notifier = notifier
    app.state.completion_client = completion_client
    app.state.verification_service = verification_service
    app.state.routing_service = routing_service


@asynccontextmanager
async def lifespan_setup(app) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}...")

    stores = await _build_stores(app)
    notifier = ResendNotifier.from_settings(settings)
    completion_client = CompletionClient.from_settings(settings)
    build_services(app, stores, notifier, completion_client)

    if not completion_client.configured:
        logger.warning("Completion API key not set; chat requests will fail with auth_failed")
    if not notifier.configured:
        logger.warning("Email API key not set; codes will be returned as fallback")

    logger.info(f"Model: {completion_client.model} | Store: {settings.store_backend.value}")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await notifier.aclose()
    await completion_client.aclose()
    for store in stores.values():
        await store.close()
    if app.state.redis_client is not None:
        await app.state.redis_client.aclose()
        logger.info("Redis connection closed")
