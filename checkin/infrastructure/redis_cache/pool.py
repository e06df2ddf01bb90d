from __future__ import annotations

from redis.asyncio import Redis


def create_redis(url: str) -> Redis:
    """
    Redis client for the given URL.
    decode_responses=True -> we get/put str, not bytes.
    """
    return Redis.from_url(url, encoding="utf-8", decode_responses=True)


async def close_redis(client: Redis | None) -> None:
    if client is not None:
        await client.aclose()
