#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Database engine and session factory.

One async engine per process, created lazily from ``Settings.database_url``.
SQLite connections get ``PRAGMA foreign_keys=ON`` so comment rows follow
their page even when pages are removed with a bulk ``DELETE``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from .config import get_settings


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Declarative base for pages, comments and images."""


# -----------------------------------------------------------------------------

def _sqlite_on_connect(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str | None = None, echo: bool | None = None, **kwargs) -> AsyncEngine:
    """Create an async engine for *url* (default: the configured database)."""
    settings = get_settings()
    db_url  = url  or settings.database_url
    db_echo = echo if echo is not None else settings.db_echo

    is_sqlite = db_url.startswith("sqlite")
    if is_sqlite:
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_size",    settings.db_pool_size)
        kwargs.setdefault("max_overflow", settings.db_max_overflow)

    engine = create_async_engine(db_url, echo=db_echo, **kwargs)
    if is_sqlite:
        event.listen(engine.sync_engine, "connect", _sqlite_on_connect)

    # never log credentials
    log.info("Database engine: %s", db_url.split("@")[-1])
    return engine


# -----------------------------------------------------------------------------

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_db(url: str | None = None, echo: bool | None = None) -> None:
    """Create the process-wide engine and session factory.  Call once at startup."""
    global _engine, _session_factory
    _engine = make_engine(url, echo)
    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)


def get_engine() -> AsyncEngine:
    if _engine is None:
        init_db()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        init_db()
    return _session_factory


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = _session_factory = None


# -----------------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency: one session per request.

    Commits when the handler returns; any exception (including the
    ``HTTPException`` raised by services) rolls back and propagates.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_all_tables() -> None:
    """Create missing tables (CREATE TABLE IF NOT EXISTS)."""
    import pagewiki.models  # noqa: F401  (registers the mapped classes)

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# -----------------------------------------------------------------------------
