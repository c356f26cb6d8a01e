"""
Pytest configuration and shared fixtures.

This file provides common fixtures for all tests.
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Settings are read at import time, so the test environment must be in place
# before anything under app/ is imported.
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production-use-0123456789")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("BCRYPT_ROUNDS", "10")

import pytest  # noqa: E402
from dotenv import load_dotenv  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel  # noqa: E402

from app.core.database import get_db  # noqa: E402
from app.core.redis import get_redis  # noqa: E402
from app.core.security import get_password_hash  # noqa: E402
from app.main import app as main_app  # noqa: E402
from app.models.user import Users  # noqa: E402
from app.services.session import SessionManager  # noqa: E402
from app.services.token_ledger import RefreshTokenLedger  # noqa: E402
from app.services.user_store import UserStore  # noqa: E402

# Load .env file at module import time to make TEST_DATABASE_URL available
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

TEST_PASSWORD = "Password123"


@pytest.fixture(scope="function")
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """
    Create test database engine for each test function.

    Uses TEST_DATABASE_URL when set, otherwise a throwaway SQLite file. A file
    (not :memory:) lets several sessions see the same data, which the
    concurrency tests rely on.
    """
    url = os.getenv("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    test_engine = create_async_engine(url, echo=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a new database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def user_store(db_session: AsyncSession) -> UserStore:
    return UserStore(db_session)


@pytest.fixture
def token_ledger(db_session: AsyncSession) -> RefreshTokenLedger:
    return RefreshTokenLedger(db_session)


@pytest.fixture
def session_manager(user_store: UserStore, token_ledger: RefreshTokenLedger) -> SessionManager:
    return SessionManager(user_store, token_ledger)


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[Users]]:
    """
    Factory fixture inserting a user with a known password.

    Usage:
        async def test_something(make_user):
            admin = await make_user("admin@example.com", "admin", role="ADMIN")
    """

    async def _make_user(
        email: str,
        username: str,
        password: str = TEST_PASSWORD,
        role: str = "USER",
        status: str = "ACTIVE",
    ) -> Users:
        user = Users(
            email=email,
            username=username,
            display_name=username,
            password_hash=get_password_hash(password),
            role=role,
            status=status,
            email_verified=status != "PENDING_VERIFICATION",
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Create a mock Redis client with pipeline support.

    pipeline() is synchronous, as are pipeline methods (incr, expire).
    Only pipeline.execute() is async.
    """
    client = AsyncMock()
    client.get.return_value = None
    mock_pipe = MagicMock()
    mock_pipe.execute = AsyncMock(return_value=[])
    # pipeline() is synchronous in redis.asyncio, so use MagicMock
    client.pipeline = MagicMock(return_value=mock_pipe)
    return client


@pytest.fixture(scope="function")
def app(db_session: AsyncSession, mock_redis: AsyncMock) -> FastAPI:
    """
    Create FastAPI app with test database session.

    This overrides the database and Redis dependencies.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def override_get_redis() -> AsyncGenerator[AsyncMock, None]:
        yield mock_redis

    main_app.dependency_overrides[get_db] = override_get_db
    main_app.dependency_overrides[get_redis] = override_get_redis

    yield main_app

    main_app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Create async HTTP client for testing API endpoints.

    Usage:
        async def test_endpoint(client):
            response = await client.get("/api/v1/auth/me")
            assert response.status_code == 401
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
