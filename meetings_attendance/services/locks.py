# meetings_attendance/services/locks.py
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable
from weakref import WeakValueDictionary


class KeyedLock:
    """
    In-process registry of asyncio locks, one per key.

    Locks are kept only while someone holds or waits on them, so the
    registry does not grow with the number of sessions ever synced.
    """

    def __init__(self) -> None:
        self._locks: "WeakValueDictionary[Hashable, asyncio.Lock]" = WeakValueDictionary()

    def _get(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._get(key)
        async with lock:
            yield


# Upserts for one meeting session and manual assignment of one record.
session_locks = KeyedLock()
record_locks = KeyedLock()
