"""Registration, login, token verification, profile and password reset; auth dependencies."""

import logging
from typing import Annotated

import redis
from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import Forbidden, Unauthenticated
from app.core.redis import get_redis
from app.models.user import ROLE_ADMIN, User
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserMessageResponse,
    UserOut,
    UserResponse,
    VerifyRequest,
)
from app.services import accounts, password_reset
from app.services.mailer import MailDeliveryError, send_reset_email

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)

FORGOT_PASSWORD_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent."
)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Dependency: require a valid Bearer JWT and return the account as currently stored."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Access token required")
    return accounts.resolve_token(db, credentials.credentials)


def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """
    Dependency: require role 'admin'. Raises 403 for non-admin.

    The role comes from the freshly loaded row, not the token claim, so a
    demotion takes effect on the next request.
    """
    if current_user.role != ROLE_ADMIN:
        raise Forbidden("Admin access required")
    return current_user


@router.post("/register", response_model=UserMessageResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> UserMessageResponse:
    """Create a pending account. An administrator must approve it before login succeeds."""
    user = accounts.register_account(db, body.name, body.email, body.password)
    return UserMessageResponse(message="User registered successfully", user=UserOut.from_user(user))


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <token>
    """
    token, user = accounts.login(db, body.email, body.password, settings)
    return LoginResponse(token=token, user=UserOut.from_user(user))


@router.post("/verify", response_model=UserResponse)
def verify(
    body: VerifyRequest,
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    """Resolve a token to the account it was issued for."""
    user = accounts.resolve_token(db, body.token)
    return UserResponse(user=UserOut.from_user(user))


@router.get("/profile", response_model=UserResponse)
def get_profile(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserResponse:
    return UserResponse(user=UserOut.from_user(current_user))


@router.put("/profile", response_model=UserMessageResponse)
def update_profile(
    body: ProfileUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserMessageResponse:
    user = accounts.update_profile(
        db, current_user, body.username, body.email, body.password
    )
    return UserMessageResponse(message="Profile updated successfully", user=UserOut.from_user(user))


async def deliver_reset_email(user_id: int, to_email: str, link: str, settings: Settings) -> None:
    """Background task: send the reset mail; failures are logged, the client already has its reply."""
    try:
        await send_reset_email(to_email, link, settings)
    except MailDeliveryError as e:
        logger.error(
            "Reset email failed",
            extra={"user_id": user_id, "reason": e.message[:500]},
        )


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
    redis_client: Annotated[redis.Redis, Depends(get_redis)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """
    Mail a reset link to a known account. The response is the same whether or
    not the email is registered; the mail goes out after the response.
    """
    user = accounts.get_by_email(db, body.email)
    if user is None:
        return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)

    token = password_reset.issue_reset_token(redis_client, user, settings)
    background_tasks.add_task(
        deliver_reset_email,
        user.id,
        user.email,
        password_reset.reset_url(token, settings),
        settings,
    )
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
    redis_client: Annotated[redis.Redis, Depends(get_redis)],
) -> MessageResponse:
    """Set a new password with a single-use reset token."""
    # Claimed (deleted) before hashing, so a concurrent second redemption finds nothing.
    data = password_reset.claim_reset_token(redis_client, body.token)
    user_id = int(data["userId"])
    accounts.set_password(db, user_id, body.password)
    logger.info("Password reset", extra={"user_id": user_id})
    return MessageResponse(message="Password reset successfully")
