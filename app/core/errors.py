"""API error taxonomy and the handlers that render it as JSON."""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base for user-visible failures: stable error code, HTTP status, optional message."""

    error = "InternalError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    headers: dict[str, str] | None = None

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message
        self.extra = extra
        super().__init__(message or self.error)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error}
        if self.message:
            body["message"] = self.message
        body.update(self.extra)
        return body


class ValidationFailed(ApiError):
    error = "ValidationFailed"
    status_code = status.HTTP_400_BAD_REQUEST


class NotRegistered(ApiError):
    error = "NotRegistered"
    status_code = status.HTTP_401_UNAUTHORIZED


class IncorrectPassword(ApiError):
    error = "IncorrectPassword"
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidCredentials(ApiError):
    error = "InvalidCredentials"
    status_code = status.HTTP_401_UNAUTHORIZED


class NotApproved(ApiError):
    error = "NotApproved"
    status_code = status.HTTP_403_FORBIDDEN


class Unauthenticated(ApiError):
    error = "Unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidToken(ApiError):
    error = "InvalidToken"
    status_code = status.HTTP_401_UNAUTHORIZED
    headers = {"WWW-Authenticate": "Bearer"}


class UserNotFound(ApiError):
    error = "UserNotFound"
    status_code = status.HTTP_401_UNAUTHORIZED
    headers = {"WWW-Authenticate": "Bearer"}


class Forbidden(ApiError):
    error = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class Conflict(ApiError):
    error = "Conflict"
    status_code = status.HTTP_409_CONFLICT


class NotFound(ApiError):
    error = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidResetToken(ApiError):
    error = "InvalidResetToken"
    status_code = status.HTTP_400_BAD_REQUEST


class ExpiredResetToken(ApiError):
    error = "ExpiredResetToken"
    status_code = status.HTTP_400_BAD_REQUEST


class RateLimited(ApiError):
    error = "RateLimited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class RateLimiterUnavailable(ApiError):
    error = "RateLimiterUnavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class InternalError(ApiError):
    error = "InternalError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def validation_error_body(exc: RequestValidationError) -> dict[str, Any]:
    """Flatten pydantic errors into {message, fieldErrors}; first error per field wins."""
    field_errors: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        msg = str(err.get("msg", "Invalid input"))
        # pydantic prefixes custom ValueError messages
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        field_errors.setdefault(field, msg)
    first = next(iter(field_errors.values()), "Invalid input")
    return {
        "error": ValidationFailed.error,
        "message": first,
        "fieldErrors": field_errors,
    }


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=ValidationFailed.status_code,
        content=validation_error_body(exc),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=InternalError.status_code,
        content={"error": InternalError.error},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on the application."""
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
