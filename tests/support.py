"""Shared fixtures for tests: explicit settings and an in-memory SQLite database."""

import unittest

from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

from chatapi.core.config import Settings
from chatapi.core.database import SessionLocal
from chatapi.core.security import hash_password
from chatapi.models import Base, User

TEST_JWT_SECRET = "test-secret-with-at-least-thirty-two-characters"
TEST_PASSWORD = "Passw0rd1"


def make_settings(**overrides: object) -> Settings:
    """Settings built explicitly, ignoring any .env file in the working directory."""
    values: dict[str, object] = {
        "JWT_SECRET": TEST_JWT_SECRET,
        "BCRYPT_ROUNDS": 4,
        "APP_ENV": "dev",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_engine():
    """Fresh in-memory database with the full schema and foreign keys enforced."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return engine


class DatabaseTestCase(unittest.TestCase):
    """One empty database and one session per test."""

    def setUp(self) -> None:
        self.settings = make_settings()
        self.engine = make_engine()
        self.db = SessionLocal(bind=self.engine)

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def make_user(self, name: str = "Alice", email: str | None = None) -> User:
        user = User(
            name=name,
            email=email or f"{name.lower()}@example.com",
            password_hash=hash_password(TEST_PASSWORD, rounds=4),
        )
        self.db.add(user)
        self.db.commit()
        return user
