from __future__ import annotations

import math

from redis.asyncio import Redis

from checkin.domain.ports.ttl_store import TTLStorePort


_LUA_COMPARE_AND_DELETE = """
-- KEYS[1]: key
-- ARGV[1]: value it must still hold
if redis.call('GET', KEYS[1]) == ARGV[1] then
  return redis.call('DEL', KEYS[1])
end
return 0
"""


def _px(ttl_seconds: float) -> int:
    # millisecond precision, never 0 (Redis rejects a zero expiry)
    return max(1, math.ceil(ttl_seconds * 1000))


class RedisTTLStore(TTLStorePort):
    def __init__(self, redis: Redis, *, scan_count: int = 500) -> None:
        self._redis = redis
        self._scan_count = scan_count
        self._cad_script = redis.register_script(_LUA_COMPARE_AND_DELETE)

    async def get(self, key: str) -> str | None:
        return await self._redis.get(key)

    async def set(self, key: str, value: str, ttl_seconds: float | None = None) -> None:
        if ttl_seconds is None:
            await self._redis.set(key, value)
        else:
            await self._redis.set(key, value, px=_px(ttl_seconds))

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def take(self, key: str) -> str | None:
        # GETDEL, Redis >= 6.2
        return await self._redis.getdel(key)

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        res = await self._cad_script(keys=[key], args=[expected])
        return int(res) == 1

    async def keys(self, pattern: str) -> list[str]:
        # SCAN instead of KEYS so a large key space doesn't block the server
        return [
            k async for k in self._redis.scan_iter(match=pattern, count=self._scan_count)
        ]

    async def try_acquire_lock(self, key: str, owner: str, ttl_seconds: float) -> bool:
        # SET key owner NX PX ttl
        res = await self._redis.set(key, owner, px=_px(ttl_seconds), nx=True)
        return bool(res)

    async def release_lock(self, key: str, owner: str) -> bool:
        return await self.compare_and_delete(key, owner)
