"""Async engine, session factory and read transactions.

Count and window queries of one load must read the same snapshot:

- SQLite: the stdlib driver only emits BEGIN ahead of DML, so plain SELECTs
  each run in their own implicit transaction. ``enable_sqlite_transactions``
  hands BEGIN over to SQLAlchemy so a read transaction really starts at
  ``begin()``.
- Other dialects: ``SessionTransacter`` opens its connection with
  ``REPEATABLE READ`` so every statement reads the snapshot taken by the
  first one.
"""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Any, Protocol

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import async_sessionmaker as _async_sessionmaker
from sqlalchemy.ext.asyncio import create_async_engine as _create_async_engine
from sqlalchemy.pool import StaticPool

from offset_paging.core.settings import get_db_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.engine import Connection, Engine
    from sqlalchemy.ext.asyncio import AsyncEngine

    from offset_paging.core.settings import DatabaseSettings

logger = logging.getLogger(__name__)

SNAPSHOT_ISOLATION_LEVEL = "REPEATABLE READ"


class Transacter(Protocol):
    """Provides one consistent read view for a unit of work."""

    def transaction(self) -> AbstractAsyncContextManager[AsyncSession]:
        """Open a transaction and yield the session bound to it."""
        ...


def _disable_driver_begin(dbapi_connection: Any, connection_record: Any) -> None:
    _ = connection_record
    # Driver autocommit; SQLAlchemy emits BEGIN itself
    dbapi_connection.isolation_level = None


def _emit_begin(conn: Connection) -> None:
    conn.exec_driver_sql("BEGIN")


def enable_sqlite_transactions(engine: Engine | AsyncEngine) -> None:
    """Make SQLAlchemy transactions on a SQLite engine real SQLite transactions.

    Must run before the engine opens its first connection. Without it a
    read-only transaction is only logical and every SELECT sees the latest
    committed data.

    Args:
        engine: Sync or async engine using the pysqlite or aiosqlite driver.
    """
    sync_engine = getattr(engine, "sync_engine", engine)
    if event.contains(sync_engine, "begin", _emit_begin):
        return
    event.listen(sync_engine, "connect", _disable_driver_begin)
    event.listen(sync_engine, "begin", _emit_begin)


def create_engine(settings: DatabaseSettings | None = None) -> AsyncEngine:
    """Create the async engine described by ``settings``.

    In-memory SQLite URLs get a ``StaticPool`` so every session sees the
    same database. SQLite engines get ``enable_sqlite_transactions``.

    Args:
        settings: Database settings. Defaults to get_db_settings().

    Returns:
        Configured AsyncEngine.
    """
    db_settings = settings or get_db_settings()
    kwargs: dict[str, object] = {"echo": db_settings.echo}
    if db_settings.is_sqlite and ":memory:" in db_settings.url:
        kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = db_settings.pool_pre_ping

    engine = _create_async_engine(db_settings.url, **kwargs)
    if db_settings.is_sqlite:
        enable_sqlite_transactions(engine)
    logger.info("Database engine created", extra={"dialect": engine.dialect.name})
    return engine


def create_session_factory(engine: AsyncEngine) -> _async_sessionmaker[AsyncSession]:
    """Create a session factory bound to ``engine``."""
    return _async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


class SessionTransacter:
    """Transacter backed by an ``async_sessionmaker``.

    Each ``transaction()`` opens a fresh session, begins a snapshot read
    transaction and guarantees the session is closed on every exit path,
    cancellation included. Nothing is written, so the transaction is rolled
    back on exit instead of committed.

    SQLite engines must have been built by ``create_engine`` or passed to
    ``enable_sqlite_transactions``.

    Example:
        transacter = SessionTransacter(create_session_factory(engine))
        async with transacter.transaction() as session:
            total = (await session.execute(count_stmt)).scalar_one()
    """

    __slots__ = ("_session_factory",)

    def __init__(self, session_factory: _async_sessionmaker[AsyncSession]) -> None:
        """Initialize with a session factory."""
        self._session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession]:
        """Yield a session inside a begun snapshot read transaction."""
        async with self._session_factory() as session:
            await session.connection(execution_options=_snapshot_options(session))
            try:
                yield session
            finally:
                await session.rollback()


def _snapshot_options(session: AsyncSession) -> dict[str, Any]:
    if session.get_bind().dialect.name == "sqlite":
        # A SQLite transaction already reads one snapshot
        return {}
    return {"isolation_level": SNAPSHOT_ISOLATION_LEVEL}


__all__ = [
    "SNAPSHOT_ISOLATION_LEVEL",
    "SessionTransacter",
    "Transacter",
    "create_engine",
    "create_session_factory",
    "enable_sqlite_transactions",
]
