"""Pytest configuration and fixtures for the workflow engine.

Uses app.main:app for HTTP tests and an in-memory SQLite engine (aiosqlite,
single shared connection) for repository, use-case, and runner tests. The
environment is set before any app import so Settings validate.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["WORKFLOW_RUNNER_ENABLED"] = "false"
os.environ["MUTATION_BUS_BACKEND"] = "memory"

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings

get_settings.cache_clear()

from app.core.limiter import limiter
from app.infrastructure.persistence import models  # noqa: F401  (registers tables)
from app.infrastructure.persistence.database import (
    Base,
    enable_sqlite_savepoints,
    get_db,
    get_db_transactional,
)
from app.main import app

from tests.helpers import ACTOR_ID, TENANT_ID


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory database per test with all tables created."""
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(eng)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine (same options as the app's)."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Database session for repository/use-case tests. Rolls back after test.

    Do not hold this session's transaction open while a runner (which opens
    its own sessions on the shared connection) is working.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the FastAPI app (ASGI), wired to the test database."""

    async def _get_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    async def _get_db_transactional() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_db_transactional] = _get_db_transactional
    limiter.enabled = False
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
        limiter.enabled = True


@pytest.fixture
def tenant_headers() -> dict[str, str]:
    """Headers for reads in the primary test tenant."""
    return {"X-Tenant-ID": TENANT_ID}


@pytest.fixture
def write_headers() -> dict[str, str]:
    """Headers for writes (tenant + actor) in the primary test tenant."""
    return {"X-Tenant-ID": TENANT_ID, "X-Actor-ID": ACTOR_ID}


