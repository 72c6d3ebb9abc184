"""Account lifecycle: registration, credential check, approval gate, token resolution, admin mutations."""

import logging
import secrets
from functools import lru_cache
from typing import TYPE_CHECKING

import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    Conflict,
    IncorrectPassword,
    InvalidCredentials,
    InvalidToken,
    NotApproved,
    NotFound,
    NotRegistered,
    UserNotFound,
)
from app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    normalize_email,
    verify_password,
)
from app.models.user import ROLE_USER, ROLES, User

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

NOT_APPROVED_MESSAGE = (
    "Your account has been created, but it has not been approved by an administrator yet."
)


# Compared against when the email is unknown so both login failures cost one bcrypt check.
@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password(secrets.token_hex(16))


def get_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_by_id(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def register_account(db: Session, name: str, email: str, password: str) -> User:
    """Create a pending account (role=user, is_approved=False)."""
    return create_account(db, name, email, password)


def create_account(
    db: Session,
    name: str,
    email: str,
    password: str,
    role: str = ROLE_USER,
    approved: bool = False,
) -> User:
    """
    Insert an account in a single commit.

    Raises Conflict when the email or display name is taken, including when a
    concurrent request wins the race and the unique constraint fires on insert.
    """
    if role not in ROLES:
        raise ValueError(f"Unknown role {role!r}")
    email = normalize_email(email)
    if get_by_email(db, email) is not None:
        raise Conflict("User already registered")
    if db.query(User).filter(User.username == name).first() is not None:
        raise Conflict("Name already taken")

    user = User(
        email=email,
        username=name,
        password_hash=hash_password(password),
        role=role,
        is_approved=approved,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("User already registered") from e
    db.refresh(user)
    logger.info("Account created", extra={"user_id": user.id, "role": role, "approved": approved})
    return user


def authenticate(db: Session, email: str, password: str, settings: "Settings") -> User:
    """
    Credential check followed by the approval gate.

    Approval is only consulted after the password matches, so an attacker
    without the password learns nothing about approval status.
    """
    user = get_by_email(db, email)
    if user is None:
        verify_password(password, _dummy_hash())
        logger.info("Login rejected", extra={"reason": "not_registered"})
        if settings.AUTH_UNIFORM_LOGIN_ERRORS:
            raise InvalidCredentials("Invalid email or password")
        raise NotRegistered("User not registered")

    if not verify_password(password, user.password_hash):
        logger.info("Login rejected", extra={"reason": "incorrect_password", "user_id": user.id})
        if settings.AUTH_UNIFORM_LOGIN_ERRORS:
            raise InvalidCredentials("Invalid email or password")
        raise IncorrectPassword("Incorrect password")

    if not user.is_approved:
        logger.info("Login rejected", extra={"reason": "not_approved", "user_id": user.id})
        raise NotApproved(NOT_APPROVED_MESSAGE)

    return user


def login(db: Session, email: str, password: str, settings: "Settings") -> tuple[str, User]:
    """Authenticate and mint an access token. Returns (token, user)."""
    user = authenticate(db, email, password, settings)
    token = create_access_token(sub=user.id, role=user.role)
    logger.info("Login succeeded", extra={"user_id": user.id})
    return token, user


def resolve_token(db: Session, token: str) -> User:
    """
    Verify signature and expiry, then load the account the token was issued for.

    Raises InvalidToken for bad/expired tokens or malformed payloads, UserNotFound
    when the account no longer exists.
    """
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as e:
        raise InvalidToken("Invalid or expired token") from e
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as e:
        raise InvalidToken("Invalid token payload") from e
    user = get_by_id(db, user_id)
    if user is None:
        raise UserNotFound("User not found")
    return user


def update_profile(
    db: Session,
    user: User,
    username: str,
    email: str,
    password: str | None = None,
) -> User:
    """Change display name, email and optionally password; both must stay unique."""
    email = normalize_email(email)
    other = get_by_email(db, email)
    if other is not None and other.id != user.id:
        raise Conflict("Email already in use")
    other = db.query(User).filter(User.username == username).first()
    if other is not None and other.id != user.id:
        raise Conflict("Name already taken")

    user.username = username
    user.email = email
    if password:
        user.password_hash = hash_password(password)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("Email already in use") from e
    db.refresh(user)
    return user


def set_password(db: Session, user_id: int, password: str) -> None:
    user = get_by_id(db, user_id)
    if user is None:
        raise NotFound("User not found")
    user.password_hash = hash_password(password)
    db.commit()


def list_accounts(db: Session) -> list[User]:
    """All accounts, newest first."""
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def set_approval(db: Session, user_id: int, approved: bool) -> User:
    """Approve or revert to pending. Repeating the same value is a no-op."""
    user = get_by_id(db, user_id)
    if user is None:
        raise NotFound("User not found")
    user.is_approved = approved
    db.commit()
    db.refresh(user)
    logger.info("Account approval updated", extra={"user_id": user.id, "is_approved": approved})
    return user


def set_role(db: Session, user_id: int, role: str) -> User:
    """Assign 'user' or 'admin'. Idempotent."""
    if role not in ROLES:
        raise ValueError(f"Invalid role: {role!r}")
    user = get_by_id(db, user_id)
    if user is None:
        raise NotFound("User not found")
    user.role = role
    db.commit()
    db.refresh(user)
    logger.info("Account role updated", extra={"user_id": user.id, "role": role})
    return user
