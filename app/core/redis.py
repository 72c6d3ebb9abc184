"""Redis connections for rate-limit counters and password reset tokens."""

from functools import lru_cache

import redis
import redis.asyncio as aioredis

from app.core.config import settings


@lru_cache
def get_redis() -> redis.Redis:
    """Return the shared blocking client, for sync route handlers (run in the threadpool)."""
    return redis.Redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )


@lru_cache
def get_async_redis() -> aioredis.Redis:
    """Return the shared asyncio client, for code running on the event loop (middleware)."""
    return aioredis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )


def check_redis_connected(client: redis.Redis) -> bool:
    """Ping Redis to verify the counter store is reachable."""
    try:
        return bool(client.ping())
    except redis.RedisError:
        return False
