"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from app.api.middleware import RateLimitMiddleware, RequestLoggingMiddleware
from app.api.routes import health
from app.api.routes import router as api_router
from app.core.config import settings
from app.core.errors import register_error_handlers
from app.services.rate_limit import get_rate_limiter

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)

# Request pipeline, outermost stage first. Starlette wraps the most recently
# added middleware around the others, so stages are added in reverse.
MIDDLEWARE_STAGES: list[tuple[type, dict]] = [
    (
        CORSMiddleware,
        {
            "allow_origins": settings.cors_origins,
            "allow_credentials": True,
            "allow_methods": ["*"],
            "allow_headers": ["*"],
            "expose_headers": [
                "RateLimit-Limit",
                "RateLimit-Remaining",
                "RateLimit-Reset",
                "Retry-After",
            ],
        },
    ),
    (GZipMiddleware, {"minimum_size": 1024}),
    (RequestLoggingMiddleware, {}),
    (
        RateLimitMiddleware,
        {
            "limiter_factory": get_rate_limiter,
            "enabled": settings.RATE_LIMIT_ENABLED,
            "fail_open": settings.RATE_LIMIT_FAIL_OPEN,
        },
    ),
]

app = FastAPI(
    title="HCF Stream API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

for middleware_cls, options in reversed(MIDDLEWARE_STAGES):
    app.add_middleware(middleware_cls, **options)

register_error_handlers(app)

app.include_router(api_router, prefix=settings.API_PREFIX)
# Unprefixed probe for load balancers
app.include_router(health.router, prefix="/health", tags=["health"], include_in_schema=False)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "HCF Stream Backend API"}
