"""Key/value store interface and the in-process implementation.

Verification entries, sessions and conversation histories each live in
their own namespace of a store. Values are JSON-compatible structures so
the same code runs against the in-memory store and Redis.
"""

import copy
import time
from typing import Any, Callable, Dict, Optional, Tuple


class KeyValueStore:
    """Async get/set/delete by key within one namespace."""

    def __init__(self, namespace: str) -> None:
        self.namespace = namespace

    async def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        raise NotImplementedError

    async def delete(self, key: str) -> bool:
        """Delete ``key``. Returns True if something was removed."""
        raise NotImplementedError

    async def count(self) -> int:
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources."""
        return None


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store for a single process.

    Values are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self, namespace: str, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__(namespace)
        self.clock = clock
        self._data: Dict[str, Tuple[Any, Optional[float]]] = {}

    def _live(self, key: str) -> Optional[Tuple[Any, Optional[float]]]:
        item = self._data.get(key)
        if item is None:
            return None
        _, expires_at = item
        if expires_at is not None and self.clock() >= expires_at:
            self._data.pop(key, None)
            return None
        return item

    async def get(self, key: str) -> Optional[Any]:
        item = self._live(key)
        if item is None:
            return None
        return copy.deepcopy(item[0])

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        expires_at = self.clock() + ttl if ttl else None
        self._data[key] = (copy.deepcopy(value), expires_at)

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def count(self) -> int:
        for key in list(self._data):
            self._live(key)
        return len(self._data)

    def clear(self) -> None:
        self._data.clear()
