"""Password reset tokens kept in Redis: issue and single-use claim."""

import json
import logging
import time
from typing import TYPE_CHECKING, Any

import redis

from app.core.errors import ExpiredResetToken, InternalError, InvalidResetToken
from app.core.security import generate_reset_token

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.models.user import User

logger = logging.getLogger(__name__)

RESET_KEY_PREFIX = "reset_token:"
# Points at an account's live token so issuing a new one retires the old.
RESET_USER_KEY_PREFIX = "reset_token_user:"


def _now_ms() -> int:
    return int(time.time() * 1000)


def reset_url(token: str, settings: "Settings") -> str:
    return f"{settings.FRONTEND_URL}/reset-password?token={token}"


def issue_reset_token(client: redis.Redis, user: "User", settings: "Settings") -> str:
    """
    Store a fresh single-use token for user and return it.

    Payload is {userId, email, expiry} with expiry in epoch ms; the key also
    carries a Redis TTL so abandoned tokens disappear on their own.
    """
    token = generate_reset_token()
    ttl_sec = settings.RESET_TOKEN_EXPIRE_MINUTES * 60
    payload = {
        "userId": user.id,
        "email": user.email,
        "expiry": _now_ms() + ttl_sec * 1000,
    }
    user_key = f"{RESET_USER_KEY_PREFIX}{user.id}"
    try:
        previous = client.get(user_key)
        pipe = client.pipeline()
        if previous:
            pipe.delete(f"{RESET_KEY_PREFIX}{previous}")
        pipe.setex(f"{RESET_KEY_PREFIX}{token}", ttl_sec, json.dumps(payload))
        pipe.setex(user_key, ttl_sec, token)
        pipe.execute()
    except redis.RedisError as e:
        logger.error("Storing reset token failed", extra={"user_id": user.id, "reason": str(e)[:200]})
        raise InternalError("Failed to process reset request") from e
    return token


def claim_reset_token(client: redis.Redis, token: str) -> dict[str, Any]:
    """
    Atomically take the token out of the store and return its payload.

    GETDEL means only one caller ever sees a given token, however many race
    for it. Raises InvalidResetToken when unknown or corrupt, ExpiredResetToken
    when past its expiry (it is gone either way).
    """
    try:
        raw = client.getdel(f"{RESET_KEY_PREFIX}{token}")
    except redis.RedisError as e:
        logger.error("Claiming reset token failed", extra={"reason": str(e)[:200]})
        raise InternalError("Failed to verify reset token") from e
    if not raw:
        raise InvalidResetToken("Invalid or expired reset token")
    try:
        data = json.loads(raw)
        int(data["userId"])
        expiry = int(data["expiry"])
    except (ValueError, KeyError, TypeError) as e:
        raise InvalidResetToken("Invalid or expired reset token") from e

    if _now_ms() > expiry:
        raise ExpiredResetToken("Reset token has expired")
    return data
