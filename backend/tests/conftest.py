"""
Pytest configuration and shared test fixtures.

Tests never touch a live database or AWS: sessions, repositories and boto3
are mocked, and API tests swap service dependencies through
``app.dependency_overrides``.
"""

import os

os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("APP_PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("APP_AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("APP_AWS_SECRET_ACCESS_KEY", "testing")

from datetime import datetime, timezone
from typing import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from bvs.core.config import get_settings
from bvs.core.security import get_password_context, hash_password
from bvs.database.models.user import User
from bvs.main import app
from bvs.services.users.enums import UserStatus

VALID_PASSWORD = "Sup3r$ecretPass"


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Drop cached settings so environment patches in one test stay local."""
    yield
    get_settings.cache_clear()
    get_password_context.cache_clear()


@pytest.fixture
def test_client() -> Generator[TestClient, None, None]:
    """
    Synchronous test client for the FastAPI application.

    Dependency overrides are cleared afterwards.
    """
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create mock async database session."""
    session = AsyncMock(spec=AsyncSession)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(VALID_PASSWORD)


@pytest.fixture
def make_user(password_hash):
    """
    Factory for persisted-looking users.

    Example:
        user = make_user(status=UserStatus.SUSPENDED)
    """

    def _make_user(
        user_id: str = "BVSCS-20251003143025-AB12",
        username: str = "jdoe42",
        email: str = "jdoe@example.com",
        status: UserStatus = UserStatus.ACTIVE,
        **overrides,
    ) -> User:
        now = datetime(2025, 10, 3, 14, 30, 25, tzinfo=timezone.utc)
        user = User(
            id=user_id,
            username=username,
            email=email,
            password_hash=overrides.pop("password_hash", password_hash),
            first_name=overrides.pop("first_name", "John"),
            last_name=overrides.pop("last_name", "Doe"),
            status=status,
            version=overrides.pop("version", 1),
            created_at=now,
            updated_at=now,
        )
        for key, value in overrides.items():
            setattr(user, key, value)
        return user

    return _make_user
