"""Per-key asyncio locks that are released from memory once idle."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Tuple


class KeyedLocks:
    """Mapping of key -> ``asyncio.Lock`` with holder/waiter refcounts.

    An entry lives only while some coroutine holds or waits on it, so the
    table stays bounded by the number of in-flight operations.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[asyncio.Lock, int]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock, users = self._entries.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._entries[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._entries[key]
            if users <= 1:
                del self._entries[key]
            else:
                self._entries[key] = (lock, users - 1)
