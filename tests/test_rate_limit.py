"""Tests for fixed-window rate limiting: buckets, counter store and middleware."""

import asyncio
import time
import unittest
from unittest.mock import AsyncMock, MagicMock

import httpx
import redis
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api_support import DbTestCase
from app.api.middleware import RateLimitMiddleware
from app.api.routes import router as api_router
from app.api.routes.health import router as health_router
from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import register_error_handlers
from app.core.redis import get_redis
from app.services.rate_limit import (
    FixedWindowRateLimiter,
    RateLimitBucket,
    RateLimiterUnavailableError,
    build_buckets,
    is_exempt,
)


class CountingPipeline:
    def __init__(self, store: "CountingRedis") -> None:
        self.store = store
        self.key = None

    def incr(self, key):
        self.key = key

    def expire(self, key, seconds, nx=False):
        self.store.windows.setdefault(key, seconds)

    def ttl(self, key):
        pass

    async def execute(self):
        if self.store.delay:
            await asyncio.sleep(self.store.delay)
        if self.store.fail:
            raise redis.ConnectionError("connection refused")
        self.store.counts[self.key] = self.store.counts.get(self.key, 0) + 1
        return [self.store.counts[self.key], True, self.store.windows[self.key]]


class CountingRedis:
    """Just enough of redis.asyncio.Redis for INCR/EXPIRE/TTL pipelines."""

    def __init__(self, delay: float = 0.0) -> None:
        self.counts: dict[str, int] = {}
        self.windows: dict[str, int] = {}
        self.fail = False
        self.delay = delay

    def pipeline(self):
        return CountingPipeline(self)


def make_settings(**overrides) -> Settings:
    values = {
        "RATE_LIMIT_API_LIMIT": 100,
        "RATE_LIMIT_API_WINDOW_SEC": 900,
        "RATE_LIMIT_AUTH_LIMIT": 5,
        "RATE_LIMIT_AUTH_WINDOW_SEC": 900,
    }
    values.update(overrides)
    return Settings(**values)


class TestBuckets(unittest.TestCase):
    def setUp(self) -> None:
        self.api, self.auth, self.static = build_buckets(make_settings())

    def test_bucket_paths(self) -> None:
        self.assertTrue(self.api.matches("/api/live-stream/current-stream"))
        self.assertTrue(self.api.matches("/api/auth/login"))
        self.assertFalse(self.api.matches("/static/app.js"))
        self.assertTrue(self.auth.matches("/api/auth/login"))
        self.assertTrue(self.auth.matches("/api/auth/register/"))
        self.assertFalse(self.auth.matches("/api/auth/profile"))
        self.assertTrue(self.static.matches("/static/app.js"))

    def test_login_counts_in_both_api_and_auth(self) -> None:
        limiter = FixedWindowRateLimiter(CountingRedis(), build_buckets(make_settings()))
        names = [b.name for b in limiter.buckets_for("/api/auth/login")]
        self.assertEqual(names, ["api", "auth"])

    def test_prefixes_must_be_distinct(self) -> None:
        a = RateLimitBucket("a", "rl:x:", 1, 60, "slow down", ("/a",))
        b = RateLimitBucket("b", "rl:x:", 1, 60, "slow down", ("/b",))
        with self.assertRaises(ValueError):
            FixedWindowRateLimiter(CountingRedis(), (a, b))

    def test_exempt(self) -> None:
        self.assertTrue(is_exempt("/health", "10.0.0.5"))
        self.assertTrue(is_exempt("/api/health", "10.0.0.5"))
        self.assertTrue(is_exempt("/api/auth/login", "127.0.0.1"))
        self.assertTrue(is_exempt("/api/auth/login", "::1"))
        self.assertFalse(is_exempt("/api/auth/login", "10.0.0.5"))


class TestFixedWindowRateLimiter(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.store = CountingRedis()
        self.bucket = RateLimitBucket("auth", "rl:auth:", 2, 900, "slow down", ("/login",), exact=True)
        self.limiter = FixedWindowRateLimiter(self.store, (self.bucket,))

    async def test_counts_until_limit(self) -> None:
        first = await self.limiter.hit(self.bucket, "10.0.0.5")
        second = await self.limiter.hit(self.bucket, "10.0.0.5")
        third = await self.limiter.hit(self.bucket, "10.0.0.5")
        self.assertTrue(first.allowed)
        self.assertEqual(first.remaining, 1)
        self.assertTrue(second.allowed)
        self.assertEqual(second.remaining, 0)
        self.assertFalse(third.allowed)
        self.assertEqual(third.reset_sec, 900)
        self.assertEqual(self.store.counts, {"rl:auth:10.0.0.5": 3})

    async def test_clients_counted_separately(self) -> None:
        await self.limiter.hit(self.bucket, "10.0.0.5")
        await self.limiter.hit(self.bucket, "10.0.0.5")
        self.assertTrue((await self.limiter.hit(self.bucket, "10.0.0.6")).allowed)

    async def test_store_error(self) -> None:
        self.store.fail = True
        with self.assertRaises(RateLimiterUnavailableError):
            await self.limiter.hit(self.bucket, "10.0.0.5")

    async def test_missing_ttl_falls_back_to_window(self) -> None:
        client = MagicMock()
        client.pipeline.return_value.execute = AsyncMock(return_value=[1, True, -1])
        limiter = FixedWindowRateLimiter(client, (self.bucket,))
        self.assertEqual((await limiter.hit(self.bucket, "10.0.0.5")).reset_sec, 900)


class TestRateLimitMiddleware(DbTestCase):
    """Real routes behind the middleware, counters in CountingRedis."""

    def build_client(self, fail_open: bool = False) -> TestClient:
        self.store = CountingRedis()
        limiter = FixedWindowRateLimiter(self.store, build_buckets(make_settings()))

        app = FastAPI()
        app.add_middleware(
            RateLimitMiddleware,
            limiter_factory=lambda: limiter,
            enabled=True,
            fail_open=fail_open,
        )
        register_error_handlers(app)
        app.include_router(api_router, prefix="/api")
        app.include_router(health_router, prefix="/health")

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        health_redis = MagicMock()
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_redis] = lambda: health_redis
        return TestClient(app)

    def test_sixth_login_attempt_is_throttled(self) -> None:
        client = self.build_client()
        body = {"email": "nobody@example.com", "password": "Passw0rd1"}
        for _ in range(5):
            response = client.post("/api/auth/login", json=body)
            self.assertEqual(response.status_code, 401)

        response = client.post("/api/auth/login", json=body)
        self.assertEqual(response.status_code, 429)
        payload = response.json()
        self.assertEqual(payload["error"], "RateLimited")
        self.assertEqual(payload["statusCode"], 429)
        self.assertEqual(payload["retryAfter"], 900)
        self.assertEqual(payload["message"], "Too many authentication attempts, please try again later.")
        self.assertEqual(response.headers["Retry-After"], "900")
        self.assertEqual(response.headers["RateLimit-Limit"], "5")
        self.assertEqual(response.headers["RateLimit-Remaining"], "0")

    def test_auth_limit_does_not_block_other_routes(self) -> None:
        client = self.build_client()
        for _ in range(6):
            client.post("/api/auth/login", json={"email": "a@example.com", "password": "x"})
        response = client.get("/api/live-stream/viewer-count")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["RateLimit-Limit"], "100")

    def test_success_reports_tightest_bucket(self) -> None:
        client = self.build_client()
        response = client.post("/api/auth/login", json={"email": "a@example.com", "password": "x"})
        self.assertEqual(response.headers["RateLimit-Limit"], "5")
        self.assertEqual(response.headers["RateLimit-Remaining"], "4")

    def test_health_is_not_counted(self) -> None:
        client = self.build_client()
        for _ in range(3):
            client.get("/health")
        self.assertEqual(self.store.counts, {})

    def test_store_down_fails_closed(self) -> None:
        client = self.build_client()
        self.store.fail = True
        response = client.get("/api/live-stream/viewer-count")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["error"], "RateLimiterUnavailable")

    def test_store_down_fails_open_when_configured(self) -> None:
        client = self.build_client(fail_open=True)
        self.store.fail = True
        response = client.get("/api/live-stream/viewer-count")
        self.assertEqual(response.status_code, 200)
        self.assertNotIn("RateLimit-Limit", response.headers)


class TestRateLimitConcurrency(unittest.IsolatedAsyncioTestCase):
    """A slow counter store must not serialize requests on the event loop."""

    async def test_slow_store_does_not_serialize_requests(self) -> None:
        store = CountingRedis(delay=0.3)
        limiter = FixedWindowRateLimiter(store, build_buckets(make_settings()))
        app = FastAPI()
        app.add_middleware(RateLimitMiddleware, limiter_factory=lambda: limiter)

        @app.get("/api/ping")
        async def ping() -> dict[str, str]:
            return {"status": "ok"}

        transport = httpx.ASGITransport(app=app, client=("10.0.0.5", 50000))
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            started = time.perf_counter()
            responses = await asyncio.gather(*(client.get("/api/ping") for _ in range(4)))
            elapsed = time.perf_counter() - started

        self.assertEqual([r.status_code for r in responses], [200, 200, 200, 200])
        # Four sequential store round trips would take at least 1.2s.
        self.assertLess(elapsed, 0.9)
        self.assertEqual(store.counts, {"rl:api:10.0.0.5": 4})


if __name__ == "__main__":
    unittest.main()
