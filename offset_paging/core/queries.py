"""Observable queries over SQLAlchemy select statements.

A ``Query`` pairs a ``Select`` with a row mapper and knows which tables it
reads, so listeners can be registered with the ``ChangeNotifier`` for
exactly those tables.

Example:
    stmt = select(items.c.value).order_by(items.c.value)

    count = count_query(stmt, notifier)
    provider = window_query_provider(stmt, notifier, mapper=lambda row: row.value)

    async with transacter.transaction() as session:
        total = await count.execute_as_one(session)
        first_page = await provider(20, 0).execute_as_list(session)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from sqlalchemy import Select, func, select
from sqlalchemy.sql.selectable import (
    AliasedReturnsRows,
    CompoundSelect,
    Join,
    TableClause,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Row
    from sqlalchemy.ext.asyncio import AsyncSession

    from offset_paging.infra.database.notifications import ChangeNotifier, Listener

type RowMapper[T] = Callable[[Row[Any]], T]
type QueryProvider[T] = Callable[[int, int], Query[T]]


def first_column(row: Row[Any]) -> Any:
    """Default mapper: the first column of the row."""
    return row[0]


class Query[T]:
    """A select statement, its row mapper and the tables it depends on.

    Attributes:
        statement: The statement executed by this query
        mapper: Converts each result row into an item
        tables: Names of the tables the statement reads from
    """

    __slots__ = ("statement", "mapper", "tables", "_notifier")

    def __init__(
        self,
        statement: Select[Any],
        notifier: ChangeNotifier,
        mapper: RowMapper[T] = first_column,
        *,
        tables: tuple[str, ...] | None = None,
    ) -> None:
        """Initialize query.

        Args:
            statement: Select statement to execute
            notifier: Channel used to observe changes to ``tables``
            mapper: Row to item conversion
            tables: Explicit table names; derived from the statement if omitted
        """
        self.statement = statement
        self.mapper = mapper
        self.tables = tables if tables is not None else tables_of(statement)
        self._notifier = notifier

    async def execute_as_list(self, session: AsyncSession) -> list[T]:
        """Run the statement and map every row."""
        result = await session.execute(self.statement)
        return [self.mapper(row) for row in result]

    async def execute_as_one(self, session: AsyncSession) -> T:
        """Run the statement and map its single row.

        Raises:
            sqlalchemy.exc.NoResultFound: If no row is returned
            sqlalchemy.exc.MultipleResultsFound: If more than one row is returned
        """
        result = await session.execute(self.statement)
        return self.mapper(result.one())

    def add_listener(self, listener: Listener) -> None:
        """Call ``listener`` whenever one of this query's tables changes."""
        self._notifier.subscribe(self.tables, listener)

    def remove_listener(self, listener: Listener) -> None:
        """Stop calling ``listener`` for this query's tables."""
        self._notifier.unsubscribe(self.tables, listener)

    def __repr__(self) -> str:
        """Repr for debugging."""
        return f"Query(tables={self.tables!r})"


def tables_of(statement: Select[Any]) -> tuple[str, ...]:
    """Names of the tables a select statement reads, in FROM order.

    Joins, aliases, subqueries and compound selects are walked down to
    their base tables.
    """
    names: list[str] = []

    def visit(element: Any) -> None:
        if isinstance(element, TableClause):
            if element.name not in names:
                names.append(element.name)
        elif isinstance(element, Join):
            visit(element.left)
            visit(element.right)
        elif isinstance(element, CompoundSelect):
            for sub in element.selects:
                visit(sub)
        elif isinstance(element, Select):
            for from_clause in element.get_final_froms():
                visit(from_clause)
        elif isinstance(element, AliasedReturnsRows):
            visit(element.element)

    visit(statement)
    return tuple(names)


def count_query(statement: Select[Any], notifier: ChangeNotifier) -> Query[int]:
    """Build ``SELECT count(*)`` over ``statement``.

    Ordering, limits and offsets already on the statement are dropped; the
    count covers every row the statement's filters match.
    """
    inner = statement.order_by(None).limit(None).offset(None)
    count_stmt = select(func.count()).select_from(inner.subquery())
    return Query(count_stmt, notifier, first_column, tables=tables_of(statement))


def window_query_provider[T](
    statement: Select[Any],
    notifier: ChangeNotifier,
    mapper: RowMapper[T] = first_column,
) -> QueryProvider[T]:
    """Build a ``(limit, offset) -> Query`` provider over ``statement``.

    The statement should carry a deterministic ORDER BY; offsets are only
    stable across loads when row order is.
    """
    tables = tables_of(statement)

    def provide(limit: int, offset: int) -> Query[T]:
        return Query(
            statement.limit(limit).offset(offset),
            notifier,
            mapper,
            tables=tables,
        )

    return provide


__all__ = [
    "Query",
    "QueryProvider",
    "RowMapper",
    "count_query",
    "first_column",
    "tables_of",
    "window_query_provider",
]
