import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from checkin.infrastructure.fallback_store import FallbackTTLStore, build_ttl_store
from checkin.infrastructure.memory_cache.ttl_store import InMemoryTTLStore
from checkin.infrastructure.redis_cache.ttl_store import RedisTTLStore


class FlakyStore(InMemoryTTLStore):
    """Memory store that raises like a dead Redis while `down` is set."""

    def __init__(self):
        super().__init__()
        self.down = False

    async def get(self, key):
        if self.down:
            raise RedisConnectionError("connection refused")
        return await super().get(key)

    async def set(self, key, value, ttl_seconds=None):
        if self.down:
            raise RedisConnectionError("connection refused")
        await super().set(key, value, ttl_seconds)

    async def take(self, key):
        if self.down:
            raise RedisConnectionError("connection refused")
        return await super().take(key)

    async def compare_and_delete(self, key, expected):
        if self.down:
            raise RedisConnectionError("connection refused")
        return await super().compare_and_delete(key, expected)

    async def try_acquire_lock(self, key, owner, ttl_seconds):
        if self.down:
            raise RedisConnectionError("connection refused")
        return await super().try_acquire_lock(key, owner, ttl_seconds)

    async def release_lock(self, key, owner):
        if self.down:
            raise RedisConnectionError("connection refused")
        return await super().release_lock(key, owner)


@pytest.mark.asyncio
async def test_primary_used_when_healthy():
    primary, fallback = FlakyStore(), InMemoryTTLStore()
    store = FallbackTTLStore(primary, fallback)

    await store.set("k", "v", 10)

    assert await primary.get("k") == "v"
    assert await fallback.get("k") is None
    assert store.degraded is False


@pytest.mark.asyncio
async def test_outage_is_served_in_process():
    primary, fallback = FlakyStore(), InMemoryTTLStore()
    store = FallbackTTLStore(primary, fallback)
    primary.down = True

    await store.set("cooldown:a@x.com", "1", 60)
    assert await store.get("cooldown:a@x.com") == "1"
    assert store.degraded is True

    assert await store.try_acquire_lock("lock", "A", 300) is True
    assert await store.try_acquire_lock("lock", "B", 300) is False
    assert await store.release_lock("lock", "A") is True


@pytest.mark.asyncio
async def test_recovers_when_primary_returns():
    primary, fallback = FlakyStore(), InMemoryTTLStore()
    store = FallbackTTLStore(primary, fallback)

    primary.down = True
    await store.get("k")
    assert store.degraded is True

    primary.down = False
    await store.set("k", "v", 10)
    assert store.degraded is False
    assert await primary.get("k") == "v"


def test_build_without_redis_is_memory_only():
    assert isinstance(build_ttl_store(None), InMemoryTTLStore)


def test_build_with_redis_wraps_it():
    from redis.asyncio import Redis

    client = Redis.from_url("redis://localhost:6379/0", decode_responses=True)
    store = build_ttl_store(client)
    assert isinstance(store, FallbackTTLStore)
    assert isinstance(store._primary, RedisTTLStore)


@pytest.mark.asyncio
async def test_take_and_compare_and_delete_fall_back():
    primary, fallback = FlakyStore(), InMemoryTTLStore()
    store = FallbackTTLStore(primary, fallback)
    primary.down = True

    await store.set("registration:tx-1", "{}", 60)
    assert await store.take("registration:tx-1") == "{}"
    assert await store.take("registration:tx-1") is None

    await store.set("otp:a@x.com", "123456", 60)
    assert await store.compare_and_delete("otp:a@x.com", "000000") is False
    assert await store.compare_and_delete("otp:a@x.com", "123456") is True
    assert store.degraded is True
