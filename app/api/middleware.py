"""Request pipeline stages: request logging and rate limiting."""

import logging
import time
from collections.abc import Callable
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from app.core.errors import RateLimited, RateLimiterUnavailable
from app.services.rate_limit import (
    FixedWindowRateLimiter,
    RateLimiterUnavailableError,
    RateLimitResult,
    is_exempt,
)

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request and echo an X-Request-Id header."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
        response.headers["X-Request-Id"] = request_id
        logger.info(
            "%s %s %s",
            request.method,
            request.url.path,
            response.status_code,
            extra={"request_id": request_id, "duration_ms": elapsed_ms},
        )
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Throttle requests per client address against every bucket whose paths match.

    Buckets are evaluated in order and each counts in its own keyspace; the first
    exhausted bucket short-circuits with 429. When the counter store fails the
    request is rejected with 503 unless fail_open is set.
    """

    def __init__(
        self,
        app: ASGIApp,
        limiter_factory: Callable[[], FixedWindowRateLimiter],
        enabled: bool = True,
        fail_open: bool = False,
    ) -> None:
        super().__init__(app)
        self.limiter_factory = limiter_factory
        self.enabled = enabled
        self.fail_open = fail_open

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        client_host = request.client.host if request.client else None
        if not self.enabled or is_exempt(path, client_host):
            return await call_next(request)

        limiter = self.limiter_factory()
        client_key = client_host or "unknown"
        results: list[RateLimitResult] = []
        try:
            for bucket in limiter.buckets_for(path):
                result = await limiter.hit(bucket, client_key)
                if not result.allowed:
                    return self._too_many_requests(request, result)
                results.append(result)
        except RateLimiterUnavailableError as e:
            if not self.fail_open:
                logger.error(
                    "Rate limiter unavailable; rejecting request",
                    extra={"path": path, "reason": e.message[:200]},
                )
                err = RateLimiterUnavailable("Service temporarily unavailable, please try again later.")
                return JSONResponse(status_code=err.status_code, content=err.to_dict())
            logger.warning(
                "Rate limiter unavailable; allowing request",
                extra={"path": path, "reason": e.message[:200]},
            )
            results = []

        response = await call_next(request)
        if results:
            tightest = min(results, key=lambda r: r.remaining)
            response.headers.update(tightest.headers())
        return response

    @staticmethod
    def _too_many_requests(request: Request, result: RateLimitResult) -> JSONResponse:
        bucket = result.bucket
        logger.warning(
            "Rate limit exceeded",
            extra={
                "bucket": bucket.name,
                "client": request.client.host if request.client else None,
                "method": request.method,
                "path": request.url.path,
                "limit": bucket.limit,
                "window_sec": bucket.window_sec,
            },
        )
        err = RateLimited(
            bucket.message,
            statusCode=RateLimited.status_code,
            retryAfter=result.reset_sec,
        )
        headers = result.headers()
        headers["Retry-After"] = str(result.reset_sec)
        return JSONResponse(status_code=err.status_code, content=err.to_dict(), headers=headers)
