"""Health check endpoint with database and Redis connectivity checks."""

from typing import Annotated

import redis
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.core.redis import check_redis_connected, get_redis
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    redis_client: Annotated[redis.Redis, Depends(get_redis)],
) -> HealthResponse:
    """
    Return service health status, database and Redis connectivity.
    Used by load balancers and monitoring; never rate limited.
    """
    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
        redis="connected" if check_redis_connected(redis_client) else "disconnected",
    )
