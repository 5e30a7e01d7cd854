"""Persistence: async engine, session factory, and Base for SQLAlchemy ORM.

Engine and session factory are created lazily on first use
(get_session_factory / get_db) so import does not trigger Settings validation.
Pool tuning applies to server databases only; SQLite (aiosqlite) uses the
dialect's default pool.
"""

import logging
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import get_settings

logger = logging.getLogger(__name__)

# Set by _ensure_engine() on first use; avoids get_settings() at import time.
engine: AsyncEngine | None = None
AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


def _engine_kwargs(database_url: str) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {}
    settings = get_settings()
    pool_size = settings.db_pool_size if settings.db_pool_size is not None else 20
    max_overflow = (
        settings.db_max_overflow if settings.db_max_overflow is not None else 30
    )
    return {
        "pool_pre_ping": True,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_recycle": 3600,
    }


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for_url(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine for database_url with the pool settings for its dialect.

    SQLite connections get foreign key enforcement (subtasks cascade with their task).
    """
    async_engine = create_async_engine(
        database_url, echo=echo, **_engine_kwargs(database_url)
    )
    if async_engine.dialect.name == "sqlite":
        event.listen(async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return async_engine


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by the unit of work (no expiry on commit, no autoflush)."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def _ensure_engine() -> None:
    """Create engine and AsyncSessionLocal on first use."""
    global engine, AsyncSessionLocal
    if AsyncSessionLocal is not None:
        return
    settings = get_settings()
    engine = create_engine_for_url(settings.database_url, echo=settings.database_echo)
    AsyncSessionLocal = create_session_factory(engine)
    logger.info("Database engine created for dialect %s", engine.dialect.name)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide session factory, creating the engine if needed."""
    _ensure_engine()
    assert AsyncSessionLocal is not None
    return AsyncSessionLocal


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine (called on shutdown)."""
    global engine, AsyncSessionLocal
    if engine is None:
        return
    await engine.dispose()
    engine = None
    AsyncSessionLocal = None


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy declarative models."""


async def create_tables(bind: AsyncEngine) -> None:
    """Create missing tables for every registered model (no migrations)."""
    from app.infrastructure.persistence import models  # noqa: F401  registers mappers

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    """Database session dependency for read operations.

    Does not commit; writes go through the unit of work.
    Yields a session and closes it on exit.
    """
    async with get_session_factory()() as session:
        yield session
