"""
Pytest configuration and fixtures for backend tests.

This module provides the core testing infrastructure including:
- Test database setup and teardown
- Session fixtures for database access
- Test client for API integration tests

Tests run against a throwaway SQLite file per test unless TEST_DATABASE_URL
points somewhere else.
"""

import os
import tempfile
from collections.abc import AsyncGenerator

# Settings are read at import time, so the environment must be ready first.
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="taskboard-uploads-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from taskboard.core.rate_limit import limiter  # noqa: E402
from taskboard.db.session import get_session  # noqa: E402
from taskboard.main import app  # noqa: E402


@pytest.fixture(scope="function")
async def engine(tmp_path):
    """Create a test database engine with a freshly built schema."""
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'taskboard.db'}"
    test_engine = create_async_engine(url, echo=False, future=True)
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture(scope="function")
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a clean AsyncSession for the test.

    Factories commit by default so rows are visible to API requests, which
    each run on their own session.
    """
    async with session_factory() as test_session:
        yield test_session


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing API endpoints.

    Usage:
        async def test_endpoint(client: AsyncClient):
            response = await client.get("/api/v1/health")
            assert response.status_code == 200
    """

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as request_session:
            yield request_session

    app.dependency_overrides[get_session] = override_get_session

    # Disable rate limiting in tests
    limiter.enabled = False

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
