"""Core app configuration, database and Redis."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.redis import get_async_redis, get_redis

__all__ = ["get_settings", "settings", "get_db", "get_redis", "get_async_redis"]
