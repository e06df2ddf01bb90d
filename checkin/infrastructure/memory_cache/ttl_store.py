from __future__ import annotations

import fnmatch
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from checkin.domain.ports.ttl_store import TTLStorePort

# value, absolute deadline on the store clock (None = never expires)
_Entry = Tuple[str, Optional[float]]


class InMemoryTTLStore(TTLStorePort):
    """
    Process-local store for single-instance deployments and tests.

    Expired entries are dropped lazily when touched. Locks live in the same
    key space as plain values, like they do in Redis.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._items: Dict[str, _Entry] = {}

    def _deadline(self, ttl_seconds: float | None) -> float | None:
        if ttl_seconds is None:
            return None
        return self._clock() + ttl_seconds

    def _live(self, key: str) -> _Entry | None:
        # caller holds self._lock
        entry = self._items.get(key)
        if entry is None:
            return None
        _, deadline = entry
        if deadline is not None and deadline <= self._clock():
            del self._items[key]
            return None
        return entry

    async def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    async def set(self, key: str, value: str, ttl_seconds: float | None = None) -> None:
        with self._lock:
            self._items[key] = (value, self._deadline(ttl_seconds))

    async def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    async def take(self, key: str) -> str | None:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return None
            del self._items[key]
            return entry[0]

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        with self._lock:
            entry = self._live(key)
            if entry is None or entry[0] != expected:
                return False
            del self._items[key]
            return True

    async def keys(self, pattern: str) -> list[str]:
        with self._lock:
            return [
                k
                for k in list(self._items)
                if fnmatch.fnmatchcase(k, pattern) and self._live(k) is not None
            ]

    async def try_acquire_lock(self, key: str, owner: str, ttl_seconds: float) -> bool:
        with self._lock:
            if self._live(key) is not None:
                return False
            self._items[key] = (owner, self._deadline(ttl_seconds))
            return True

    async def release_lock(self, key: str, owner: str) -> bool:
        return await self.compare_and_delete(key, owner)
