"""
Shared test fixtures.

Provides: in-memory async SQLite session, user factory, auth headers,
HTTP client with the database dependency overridden.
"""
import os

# Settings are read at import time, so configure them before importing the app
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-classboard-test-suite")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_USE_REDIS", "false")
os.environ.setdefault("LOG_TO_FILE", "false")

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from classboard.database import Base, get_db
from classboard.models import User, Diagram  # noqa: F401
from classboard.schemas.user import UserCreate
from classboard.services.user_service import UserService
from classboard.utils.security import create_access_token


@pytest.fixture
async def db_session():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def create_user(db_session):
    """Factory fixture creating committed users."""
    async def _create_user(name: str = "Test User", email: str | None = None) -> User:
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        user = await UserService(db_session).create_user(
            UserCreate(name=name, email=email, password="TestPassword123!")
        )
        await db_session.commit()
        return user

    return _create_user


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict[str, str]:
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
async def client(db_session):
    from classboard.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()
