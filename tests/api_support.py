"""Shared fixtures for API tests: in-memory SQLite session and mocked Redis."""

import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import get_db
from app.core.redis import get_redis
from app.core.security import create_access_token, hash_password
from app.main import app
from app.models import Base, User


def sqlite_sessionmaker() -> sessionmaker:
    """Fresh in-memory database with all tables; one shared connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


class DbTestCase(unittest.TestCase):
    """Gives each test an empty database and cheap bcrypt rounds."""

    def setUp(self) -> None:
        rounds = patch("app.core.security.BCRYPT_ROUNDS", 4)
        rounds.start()
        self.addCleanup(rounds.stop)
        self.SessionLocal = sqlite_sessionmaker()
        self.db = self.SessionLocal()
        self.addCleanup(self.db.close)

    def make_user(
        self,
        email: str = "member@example.com",
        username: str = "Member",
        password: str = "Passw0rd1",
        role: str = "user",
        approved: bool = True,
    ) -> User:
        user = User(
            email=email,
            username=username,
            password_hash=hash_password(password),
            role=role,
            is_approved=approved,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user


class ApiTestCase(DbTestCase):
    """DbTestCase plus a TestClient wired to the test database and a MagicMock Redis."""

    def setUp(self) -> None:
        super().setUp()
        self.redis = MagicMock()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_redis] = lambda: self.redis
        self.addCleanup(app.dependency_overrides.clear)
        self.client = TestClient(app)

    def auth_header(self, user: User, role: str | None = None) -> dict[str, str]:
        token = create_access_token(sub=user.id, role=role or user.role)
        return {"Authorization": f"Bearer {token}"}
