"""Request/response schemas for auth and account endpoints."""

import re
from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    normalize_email,
)
from app.models.user import User

NAME_PATTERN = re.compile(r"^[A-Za-z\s]+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def _check_name(v: str) -> str:
    v = v.strip()
    if not (NAME_MIN_LEN <= len(v) <= NAME_MAX_LEN):
        raise ValueError(
            f"Name must be between {NAME_MIN_LEN} and {NAME_MAX_LEN} characters"
        )
    if not NAME_PATTERN.match(v):
        raise ValueError("Name can only contain letters and spaces")
    return v


def _check_password(v: str) -> str:
    if len(v) < PASSWORD_MIN_LEN:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LEN} characters long")
    if len(v) > PASSWORD_MAX_LEN:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_LEN} characters long")
    if not PASSWORD_PATTERN.match(v):
        raise ValueError(
            "Password must contain at least one lowercase letter, one uppercase letter, and one number"
        )
    return v


class RegisterRequest(BaseModel):
    """New account: display name, email and password."""

    name: str = Field(..., description="Display name (letters and spaces)")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("email")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return _check_password(v)


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")

    @field_validator("email")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_email(v)


class VerifyRequest(BaseModel):
    """Bearer token to verify."""

    token: str = Field(..., min_length=1, description="JWT access token")


class ProfileUpdateRequest(BaseModel):
    """Profile edit; password is optional and only changed when present."""

    username: str = Field(..., description="Display name")
    email: EmailStr = Field(..., description="Email address")
    password: str | None = Field(default=None, description="New password")

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("email")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return None
        return _check_password(v)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_email(v)


class ResetPasswordRequest(BaseModel):
    """Reset token from the mailed link plus the new password."""

    token: str = Field(..., min_length=1)
    password: str = Field(..., validation_alias=AliasChoices("password", "newPassword"))

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return _check_password(v)


class UserOut(BaseModel):
    """Account as returned to clients. Never carries the password hash."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    email: str
    username: str
    name: str
    role: str
    is_approved: bool = Field(alias="isApproved")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            name=user.username,
            role=user.role,
            is_approved=bool(user.is_approved),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserResponse(BaseModel):
    user: UserOut


class MessageResponse(BaseModel):
    message: str


class UserMessageResponse(BaseModel):
    message: str
    user: UserOut


class LoginResponse(BaseModel):
    """Signed access token plus the account it was issued for."""

    message: str = "Login successful"
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserOut


class UsersListResponse(BaseModel):
    """Response for GET /admin/users (admin only)."""

    users: list[UserOut]


class ApprovalUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_approved: bool = Field(alias="isApproved")


class RoleUpdateRequest(BaseModel):
    role: Literal["user", "admin"]
