"""Named asyncio locks used to serialise mutations of one ledger or plan."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class KeyedLocks:
    """Lazily created ``asyncio.Lock`` per key.

    Services share one instance through the application container, so two requests
    touching the same wallet or recurring plan are serialised while unrelated keys
    proceed concurrently.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        async with self.get(key):
            yield

    def __len__(self) -> int:
        return len(self._locks)


__all__ = ["KeyedLocks"]
