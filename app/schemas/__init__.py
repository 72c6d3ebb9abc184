"""Pydantic request/response schemas."""

from app.schemas.archive import ChatMessageOut, SermonOut, StatsResponse
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserOut,
)
from app.schemas.health import HealthResponse
from app.schemas.stream import (
    ScheduleCreateRequest,
    StreamOut,
    StreamStatusResponse,
)

__all__ = [
    "ChatMessageOut",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "RegisterRequest",
    "ScheduleCreateRequest",
    "SermonOut",
    "StatsResponse",
    "StreamOut",
    "StreamStatusResponse",
    "UserOut",
]
