from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

from redis.exceptions import RedisError

from checkin.domain.ports.ttl_store import TTLStorePort
from checkin.infrastructure.memory_cache.ttl_store import InMemoryTTLStore
from checkin.infrastructure.redis_cache.ttl_store import RedisTTLStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FallbackTTLStore(TTLStorePort):
    """
    Redis first; when Redis errors out, the same call is served from an
    in-process store so request handlers keep working.

    While degraded, codes, tokens and locks are only visible to this process.
    Entries written to Redis before the outage are not copied over.
    """

    def __init__(
        self, primary: TTLStorePort, fallback: TTLStorePort | None = None
    ) -> None:
        self._primary = primary
        self._fallback = fallback or InMemoryTTLStore()
        self.degraded = False

    async def _call(
        self,
        op: str,
        primary: Callable[..., Awaitable[T]],
        fallback: Callable[..., Awaitable[T]],
        *args: Any,
    ) -> T:
        try:
            result = await primary(*args)
        except RedisError as e:
            if not self.degraded:
                logger.warning(
                    "ttl store unavailable; using in-process fallback",
                    extra={"op": op, "error": str(e)},
                )
            self.degraded = True
            return await fallback(*args)
        if self.degraded:
            logger.info("ttl store reachable again", extra={"op": op})
            self.degraded = False
        return result

    async def get(self, key: str) -> str | None:
        return await self._call("get", self._primary.get, self._fallback.get, key)

    async def set(self, key: str, value: str, ttl_seconds: float | None = None) -> None:
        await self._call(
            "set", self._primary.set, self._fallback.set, key, value, ttl_seconds
        )

    async def delete(self, key: str) -> None:
        await self._call("delete", self._primary.delete, self._fallback.delete, key)

    async def take(self, key: str) -> str | None:
        return await self._call("take", self._primary.take, self._fallback.take, key)

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        return await self._call(
            "compare_and_delete",
            self._primary.compare_and_delete,
            self._fallback.compare_and_delete,
            key,
            expected,
        )

    async def keys(self, pattern: str) -> list[str]:
        return await self._call("keys", self._primary.keys, self._fallback.keys, pattern)

    async def try_acquire_lock(self, key: str, owner: str, ttl_seconds: float) -> bool:
        return await self._call(
            "try_acquire_lock",
            self._primary.try_acquire_lock,
            self._fallback.try_acquire_lock,
            key,
            owner,
            ttl_seconds,
        )

    async def release_lock(self, key: str, owner: str) -> bool:
        return await self._call(
            "release_lock",
            self._primary.release_lock,
            self._fallback.release_lock,
            key,
            owner,
        )


def build_ttl_store(redis_client: Any | None) -> TTLStorePort:
    """Pick the backend once at startup."""
    if redis_client is None:
        logger.warning("no redis configured; using in-process ttl store")
        return InMemoryTTLStore()
    return FallbackTTLStore(RedisTTLStore(redis_client))
