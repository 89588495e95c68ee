"""Pytest configuration and shared fixtures.

Organization:
    - Settings Fixtures: isolate cached settings between tests
    - Database Fixtures: in-memory SQLite engine seeded with ``test_table``
    - Paging Fixtures: notifier, transacter and paging source factories

Every database fixture runs against ``sqlite+aiosqlite`` in memory, so the
suite needs no external services.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Callable
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import Column, Integer, MetaData, Table, insert, select

from offset_paging.core.paging import OffsetQueryPagingSource, query_paging_source
from offset_paging.core.settings import DatabaseSettings, clear_all_caches
from offset_paging.infra.database import (
    ChangeNotifier,
    SessionTransacter,
    create_engine,
    create_session_factory,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

# Ensure tests never pick up a developer database
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_JSON_LOGS", "false")

ROW_COUNT = 10

metadata = MetaData()

test_table_definition = Table(
    "test_table",
    metadata,
    Column("value", Integer, primary_key=True, autoincrement=False),
)


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear cached settings before and after each test."""
    clear_all_caches()
    yield
    clear_all_caches()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def test_table() -> Table:
    """The ``test_table(value INTEGER PRIMARY KEY)`` table definition."""
    return test_table_definition


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create async engine with in-memory SQLite and ``test_table`` seeded 0..9.

    Built by ``create_engine``: StaticPool keeps a single connection so every
    session sees the same in-memory database, and reads run in real SQLite
    transactions.

    Yields:
        Async SQLAlchemy engine.
    """
    engine = create_engine(DatabaseSettings(url="sqlite+aiosqlite:///:memory:"))
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        await conn.execute(
            insert(test_table_definition),
            [{"value": value} for value in range(ROW_COUNT)],
        )

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def notifier(db_engine: AsyncEngine) -> ChangeNotifier:
    """Change notifier attached to the test engine."""
    change_notifier = ChangeNotifier()
    change_notifier.attach(db_engine)
    yield change_notifier
    change_notifier.detach(db_engine)


@pytest.fixture
def transacter(db_engine: AsyncEngine) -> SessionTransacter:
    """Read transacter over the test engine."""
    return SessionTransacter(create_session_factory(db_engine))


# ============================================================================
# Paging Fixtures
# ============================================================================


@pytest.fixture
def make_source(
    notifier: ChangeNotifier,
    transacter: SessionTransacter,
    test_table: Table,
) -> Callable[[], OffsetQueryPagingSource[int]]:
    """Factory for paging sources over ``test_table`` ordered by value.

    Example:
        async def test_first_page(make_source):
            source = make_source()
            page = await source.load(LoadParams.refresh(None, 2))
    """

    def factory() -> OffsetQueryPagingSource[int]:
        return query_paging_source(
            select(test_table.c.value).order_by(test_table.c.value),
            notifier=notifier,
            transacter=transacter,
        )

    return factory
