"""
Async test configuration and fixtures for pytest.

Each test gets its own in-memory SQLite database (aiosqlite) with foreign
keys enforced, and an httpx client bound to the app with the database
dependency pointed at that database.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401  registers every table on Base.metadata
from app.core.rate_limit import limiter
from app.db.async_session import get_async_db
from app.db.base_class import Base
from app.main import app
from tests.async_test_utils import AsyncTestDataFactory
from tests.utils_jwt import generate_test_jwt


@pytest.fixture
def async_test_db_url() -> str:
    """In-memory SQLite; StaticPool keeps the single connection alive."""
    return "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def async_engine(async_test_db_url):
    """Create an async SQLAlchemy engine with the schema in place."""
    engine = create_async_engine(
        async_test_db_url,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def async_session_factory(async_engine):
    return async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def async_db_session(async_session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and asserting directly against the database."""
    async with async_session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Every test starts with empty rate-limit counters."""
    limiter.reset()
    yield
    limiter.reset()


@pytest_asyncio.fixture
async def async_client(async_session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx client talking to the app in-process.

    Every request gets a fresh session on the test database, the same way
    `get_async_db` hands out one session per request.
    """
    async def override_get_async_db():
        async with async_session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_db] = override_get_async_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def factory(async_db_session) -> AsyncTestDataFactory:
    return AsyncTestDataFactory(async_db_session)


@pytest_asyncio.fixture
async def test_user(factory):
    """A local user with the password `password123`."""
    return await factory.create_user(email="testuser@example.com", password="password123")


@pytest.fixture
def auth_header(test_user):
    """Return an Authorization header with a valid JWT for the test user."""
    token = generate_test_jwt(user_id=test_user.id, email=test_user.email)
    return {"Authorization": f"Bearer {token}"}
