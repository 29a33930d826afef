"""Redis-backed key/value store and client construction."""

import json
from typing import Any, Optional

import redis.asyncio as redis
from loguru import logger

from agent_bridge.database.base import KeyValueStore
from agent_bridge.settings.settings import Settings


def create_redis_client(settings: Settings) -> redis.Redis:
    """Build an asyncio Redis client from settings.

    Args:
        settings: Application settings

    Returns:
        A Redis client that decodes responses to ``str``
    """
    redis_url = settings.redis_url or str(settings.redis_url_property)
    redis_url_log = redis_url
    if settings.redis_password:
        redis_url_log = redis_url.replace(settings.redis_password, "****")
    logger.info(f"Connecting to Redis at {redis_url_log}")
    return redis.from_url(redis_url, decode_responses=True)


class RedisKeyValueStore(KeyValueStore):
    """Store values as JSON strings under ``{prefix}:{namespace}:{key}``."""

    def __init__(self, client: redis.Redis, namespace: str, prefix: str = "agent_bridge") -> None:
        super().__init__(namespace)
        self.client = client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        payload = json.dumps(value)
        if ttl:
            await self.client.set(self._key(key), payload, ex=ttl)
        else:
            await self.client.set(self._key(key), payload)

    async def delete(self, key: str) -> bool:
        removed = await self.client.delete(self._key(key))
        return bool(removed)

    async def count(self) -> int:
        total = 0
        async for _ in self.client.scan_iter(match=f"{self.prefix}:{self.namespace}:*"):
            total += 1
        return total
