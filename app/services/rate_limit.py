"""Redis-backed fixed-window rate limiting with one keyspace per named bucket."""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

import redis
import redis.asyncio as aioredis

from app.core.redis import get_async_redis

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

# Liveness/readiness probes are never throttled.
EXEMPT_PATHS = frozenset({"/health", "/healthz", "/livez", "/readyz", "/api/health"})
LOOPBACK_ADDRESSES = frozenset({"127.0.0.1", "::1", "::ffff:127.0.0.1"})


class RateLimiterUnavailableError(Exception):
    """Raised when the counter store cannot be reached."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class RateLimitBucket:
    """
    A named, independently counted limit.

    prefix must be unique per bucket; it is the Redis keyspace for its counters.
    Paths match by prefix, or exactly when exact=True.
    """

    name: str
    prefix: str
    limit: int
    window_sec: int
    message: str
    paths: tuple[str, ...]
    exact: bool = False

    def matches(self, path: str) -> bool:
        if self.exact:
            return path.rstrip("/") in self.paths
        return any(path.startswith(p) for p in self.paths)


@dataclass(frozen=True)
class RateLimitResult:
    bucket: RateLimitBucket
    allowed: bool
    count: int
    remaining: int
    reset_sec: int

    def headers(self) -> dict[str, str]:
        """Standard RateLimit-* response headers."""
        return {
            "RateLimit-Limit": str(self.bucket.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_sec),
        }


def build_buckets(settings: "Settings") -> tuple[RateLimitBucket, ...]:
    """General API, auth-specific and static-asset buckets, in evaluation order."""
    api_prefix = settings.API_PREFIX.rstrip("/")
    return (
        RateLimitBucket(
            name="api",
            prefix="rl:api:",
            limit=settings.RATE_LIMIT_API_LIMIT,
            window_sec=settings.RATE_LIMIT_API_WINDOW_SEC,
            message="Too many requests from this IP, please try again later.",
            paths=(f"{api_prefix}/",),
        ),
        RateLimitBucket(
            name="auth",
            prefix="rl:auth:",
            limit=settings.RATE_LIMIT_AUTH_LIMIT,
            window_sec=settings.RATE_LIMIT_AUTH_WINDOW_SEC,
            message="Too many authentication attempts, please try again later.",
            paths=(f"{api_prefix}/auth/login", f"{api_prefix}/auth/register"),
            exact=True,
        ),
        RateLimitBucket(
            name="static",
            prefix="rl:static:",
            limit=settings.RATE_LIMIT_STATIC_LIMIT,
            window_sec=settings.RATE_LIMIT_STATIC_WINDOW_SEC,
            message="Too many static asset requests, please try again later.",
            paths=("/static/",),
        ),
    )


def is_exempt(path: str, client_host: str | None) -> bool:
    if path.rstrip("/") in EXEMPT_PATHS or path in EXEMPT_PATHS:
        return True
    return client_host in LOOPBACK_ADDRESSES


class FixedWindowRateLimiter:
    """Counts requests per (bucket, client) in Redis; the first hit opens the window."""

    def __init__(self, client: aioredis.Redis, buckets: tuple[RateLimitBucket, ...]) -> None:
        prefixes = [b.prefix for b in buckets]
        if len(set(prefixes)) != len(prefixes):
            raise ValueError("Each rate limit bucket needs its own key prefix")
        self._client = client
        self.buckets = buckets

    def buckets_for(self, path: str) -> list[RateLimitBucket]:
        return [b for b in self.buckets if b.matches(path)]

    async def hit(self, bucket: RateLimitBucket, client_key: str) -> RateLimitResult:
        """Count one request against bucket. Raises RateLimiterUnavailableError on store errors."""
        key = f"{bucket.prefix}{client_key}"
        try:
            pipe = self._client.pipeline()
            pipe.incr(key)
            # NX: only the request that creates the counter sets its expiry
            pipe.expire(key, bucket.window_sec, nx=True)
            pipe.ttl(key)
            count, _, ttl = await pipe.execute()
        except (redis.RedisError, OSError) as e:
            raise RateLimiterUnavailableError(f"Rate limit store error: {e!s}") from e

        count = int(count)
        ttl = int(ttl)
        reset_sec = ttl if ttl > 0 else bucket.window_sec
        return RateLimitResult(
            bucket=bucket,
            allowed=count <= bucket.limit,
            count=count,
            remaining=max(0, bucket.limit - count),
            reset_sec=reset_sec,
        )


@lru_cache
def get_rate_limiter() -> FixedWindowRateLimiter:
    """Process-wide limiter over the shared asyncio Redis client."""
    from app.core.config import get_settings

    return FixedWindowRateLimiter(get_async_redis(), build_buckets(get_settings()))
