"""
Async SQLAlchemy engine and session management.

PostgreSQL (asyncpg) in production, SQLite (aiosqlite) for local runs and
tests. SQLite connections get ``PRAGMA foreign_keys=ON`` so that references
and cascade deletes are enforced the same way on both backends.
"""

from typing import AsyncGenerator

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from core.config import settings
from db.base import Base

logger = structlog.get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine, applying SQLite specifics when needed."""
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        engine = create_async_engine(url, echo=echo, **kwargs)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: committed records are handed to the fan-out after commit
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_engine() -> AsyncEngine:
    """Get (and lazily create) the process-wide engine."""
    global _engine
    if _engine is None:
        _engine = create_engine(settings.database_url, echo=settings.DATABASE_ECHO)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get (and lazily create) the session factory bound to the process-wide engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())
    return _session_factory


async def init_db() -> None:
    """Create tables that do not exist yet."""
    import models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized", backend=engine.dialect.name)


async def close_db() -> None:
    """Dispose of the engine and its connection pool."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("database_closed")
    _engine = None
    _session_factory = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a session per request.

    Services commit explicitly; anything left uncommitted when the request
    fails is rolled back so no partial write becomes visible.
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
