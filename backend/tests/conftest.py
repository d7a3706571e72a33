"""Pytest configuration and fixtures."""

import os

# Set test configuration BEFORE any app imports
# This must be done before app.core.config loads settings
os.environ["DEBUG"] = "true"
os.environ["OTEL_ENABLED"] = "false"
os.environ["SECRET_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

from collections.abc import AsyncGenerator, Generator

import pytest
from app.core.database import enable_sqlite_foreign_keys, get_db
from app.core.locks import line_locks
from app.main import app
from app.models import Base
from app.models.metro import Station
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tests.fixtures.otel import otel_enabled_provider, reset_tracer_provider  # noqa: F401
from tests.helpers.metro_network import create_test_station

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """
    Create a fresh in-memory SQLite database for one test.

    StaticPool keeps a single connection so every session sees the same
    in-memory database. The schema is built from the model metadata.

    Yields:
        AsyncEngine bound to the test database
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """
    Database session for a single test.

    Args:
        db_engine: Per-test database engine

    Yields:
        Async SQLAlchemy session
    """
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient]:
    """
    Async HTTP client with get_db overridden to use the test session.

    Args:
        db_session: Test database session

    Yields:
        Async HTTP client with ASGI transport
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client() -> Generator[TestClient]:
    """
    FastAPI synchronous test client (runs the lifespan).

    Yields:
        Synchronous test client with app context
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def reset_line_locks() -> Generator[None]:
    """Fail loudly if a test leaves a line lock held."""
    yield
    assert not any(lock.locked() for lock in list(line_locks._locks.values()))


# ==================== Station fixtures ====================


@pytest.fixture
async def stations(db_session: AsyncSession) -> dict[str, Station]:
    """
    Five committed stations keyed by short name.

    Returns:
        Dict of "yeonsinnae", "seoul", "samseong", "gangnam", "yangjae" -> Station
    """
    created = {
        key: create_test_station(name)
        for key, name in {
            "yeonsinnae": "Yeonsinnae",
            "seoul": "Seoul Station",
            "samseong": "Samseong",
            "gangnam": "Gangnam",
            "yangjae": "Yangjae",
        }.items()
    }
    db_session.add_all(created.values())
    await db_session.commit()
    return created
