"""ORM model for accounts (auth, approval and RBAC)."""

from sqlalchemy import Boolean, Column, Integer, String, Text, false

from app.models.base import Base, TimestampMixin

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


class User(TimestampMixin, Base):
    """
    Account for JWT authentication, admin approval and role-based access control.

    email is stored lower-cased; username is the unique display name.
    role: 'admin' or 'user'. New accounts start as role='user', is_approved=False.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    username = Column(String(100), nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    role = Column(String(50), nullable=False, default=ROLE_USER, server_default=ROLE_USER)
    is_approved = Column(Boolean, nullable=False, default=False, server_default=false())

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
