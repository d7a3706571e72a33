"""Tests for database configuration and session management (lazy initialization)."""

import threading
from unittest.mock import patch

import pytest
from app.core import database as database_module
from app.core.config import settings
from app.core.database import enable_sqlite_foreign_keys, get_db, get_engine, get_session_factory
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool


@pytest.fixture(autouse=True)
def reset_database_globals():
    """Reset database module globals before and after each test for isolation."""
    database_module._engine = None
    database_module._session_factory = None
    yield
    database_module._engine = None
    database_module._session_factory = None


class TestLazyInitialization:
    """Tests for lazy initialization of database engine and session factory."""

    def test_lazy_engine_initialization(self) -> None:
        """Test that engine is created on first call to get_engine() and then reused."""
        assert database_module._engine is None

        engine = get_engine()

        assert isinstance(engine, AsyncEngine)
        assert database_module._engine is engine
        assert get_engine() is engine

    def test_lazy_session_factory_initialization(self) -> None:
        """Test that session factory is created lazily and bound to the lazy engine."""
        assert database_module._session_factory is None

        session_factory = get_session_factory()

        assert isinstance(session_factory, async_sessionmaker)
        assert session_factory.kw["bind"] is get_engine()
        assert session_factory.kw["expire_on_commit"] is False
        assert session_factory.kw["autoflush"] is False
        assert get_session_factory() is session_factory

    def test_concurrent_engine_initialization_is_thread_safe(self) -> None:
        """Test that concurrent first calls create a single engine."""
        engines: list[AsyncEngine] = []
        barrier = threading.Barrier(10)

        def worker() -> None:
            barrier.wait()
            engines.append(get_engine())

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(engines) == 10
        assert all(engine is engines[0] for engine in engines)


class TestEngineConfiguration:
    """Tests for engine selection per database backend."""

    def test_sqlite_engine(self) -> None:
        """Test that the test environment gets an aiosqlite engine."""
        engine = get_engine()
        assert engine.url.drivername == "sqlite+aiosqlite"

    def test_postgres_engine_uses_null_pool_in_debug(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that DEBUG mode on PostgreSQL avoids pooling."""
        monkeypatch.setattr(settings, "DATABASE_URL", "postgresql+asyncpg://u:p@localhost:5432/metro")
        monkeypatch.setattr(settings, "DEBUG", True)

        engine = get_engine()

        assert engine.url.drivername == "postgresql+asyncpg"
        assert isinstance(engine.pool, NullPool)

    def test_postgres_engine_uses_pool_settings_in_production(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that production mode passes pool size settings through."""
        monkeypatch.setattr(settings, "DATABASE_URL", "postgresql+asyncpg://u:p@localhost:5432/metro")
        monkeypatch.setattr(settings, "DEBUG", False)

        with patch("app.core.database.create_async_engine") as mock_create:
            get_engine()

        kwargs = mock_create.call_args.kwargs
        assert kwargs["pool_size"] == settings.DATABASE_POOL_SIZE
        assert kwargs["max_overflow"] == settings.DATABASE_MAX_OVERFLOW


class TestSqliteForeignKeys:
    """Tests for SQLite foreign key enforcement."""

    @pytest.mark.asyncio
    async def test_foreign_keys_enabled(self) -> None:
        """Test that every new connection runs with foreign_keys=ON."""
        engine = create_async_engine("sqlite+aiosqlite:///:memory:")
        enable_sqlite_foreign_keys(engine)

        async with engine.connect() as conn:
            result = await conn.execute(text("PRAGMA foreign_keys"))
            assert result.scalar() == 1

        await engine.dispose()


class TestGetDb:
    """Tests for get_db dependency."""

    @pytest.mark.asyncio
    async def test_get_db_yields_working_session(self) -> None:
        """Test that get_db yields an active session that can query."""
        async for session in get_db():
            assert isinstance(session, AsyncSession)
            assert session.is_active
            assert (await session.execute(text("SELECT 1"))).scalar() == 1
            assert database_module._session_factory is get_session_factory()
            break

        await get_engine().dispose()
