"""Database session management."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from reachsync.config import Settings

logger = logging.getLogger(__name__)


class Database:
    """Database connection and session manager."""

    def __init__(self, settings: Settings) -> None:
        """Initialize database with settings."""
        self.settings = settings
        url = settings.database.url

        engine_kwargs: dict[str, Any] = {
            "echo": settings.database.echo,
            "pool_pre_ping": settings.database.pool_pre_ping,
        }

        if "postgresql" in url:
            engine_kwargs.update(
                {
                    "pool_size": settings.database.pool_size,
                    "max_overflow": settings.database.max_overflow,
                    "pool_timeout": settings.database.pool_timeout,
                    "pool_recycle": settings.database.pool_recycle,
                }
            )
        elif "sqlite" in url:
            engine_kwargs["connect_args"] = {
                "check_same_thread": False,
                "timeout": 30,
            }
            # Hey future me - an in-memory database lives inside ONE connection. Without
            # StaticPool every checkout would see a fresh empty database (tests!).
            if ":memory:" in url:
                engine_kwargs["poolclass"] = StaticPool

        self._engine = create_async_engine(url, **engine_kwargs)

        if "sqlite" in url:
            self._configure_sqlite()

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    # Listen future me, the sync engine relies on SAVEPOINTs (one per derived collection).
    # The sqlite3 driver's own transaction handling breaks SAVEPOINT/ROLLBACK TO, so we
    # switch it to autocommit mode and emit BEGIN ourselves. Foreign keys are off by
    # default in SQLite and must be enabled per connection.
    def _configure_sqlite(self) -> None:
        """Enable foreign keys and driver-independent transactions for SQLite."""

        @event.listens_for(self._engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_conn: Any, _connection_record: Any) -> None:
            dbapi_conn.isolation_level = None
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
            logger.debug("Enabled foreign keys for SQLite connection")

        @event.listens_for(self._engine.sync_engine, "begin")
        def do_begin(conn: Any) -> None:
            conn.exec_driver_sql("BEGIN")

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional scope: commit on success, rollback on error."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Close database connection."""
        await self._engine.dispose()

    async def create_tables(self) -> None:
        """Create all tables (dev and tests; production uses alembic)."""
        from reachsync.infrastructure.persistence.models import Base

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
