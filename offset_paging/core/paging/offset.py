"""Offset-based paging source over a counted, LIMIT/OFFSET-able query.

Keys are plain row offsets. Every load counts the data set and fetches one
window inside the same read transaction, so the counts reported with a page
always agree with its data.

Key arithmetic:
    - ``prev_key`` is ``offset - load_size`` and is never clamped. A
      misaligned refresh (offset 1, size 2) reports ``prev_key == -1``.
    - A negative key is loaded as the short window ``[0, load_size + key)``,
      so walking ``prev_key`` back from offset 1 yields ``[1, 2]`` then ``[0]``.
    - ``next_key`` is the offset just after the returned rows, or ``None``
      once the data set is exhausted. An empty window never yields a
      next key, so a forward walk cannot loop on one offset.

The source listens for changes to every table its count and window queries
read, and invalidates itself on the first one.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from sqlalchemy.exc import SQLAlchemyError

from offset_paging.core.exceptions import OutOfBoundsError, StoreError
from offset_paging.core.paging.params import Invalid, Page
from offset_paging.core.paging.source import PagingSource
from offset_paging.core.queries import count_query, first_column, window_query_provider
from offset_paging.infra.metrics import paging_load_duration_seconds, paging_loads_total

if TYPE_CHECKING:
    from sqlalchemy import Select

    from offset_paging.core.paging.params import LoadParams, LoadResult, PagingState
    from offset_paging.core.queries import Query, QueryProvider, RowMapper
    from offset_paging.infra.database.notifications import ChangeNotifier
    from offset_paging.infra.database.session import Transacter

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class OffsetQueryPagingSource[T](PagingSource[int, T]):
    """Pages a query by row offset.

    Args:
        query_provider: Builds the window query for ``(limit, offset)``
        count_query: Counts the rows of the data set
        transacter: Supplies the read transaction shared by count and fetch

    Example:
        stmt = select(items.c.value).order_by(items.c.value)
        source = OffsetQueryPagingSource(
            window_query_provider(stmt, notifier),
            count_query(stmt, notifier),
            SessionTransacter(session_factory),
        )
        page = await source.load(LoadParams.refresh(None, 20))
    """

    def __init__(
        self,
        query_provider: QueryProvider[T],
        count_query: Query[int],
        transacter: Transacter,
    ) -> None:
        super().__init__()
        self._query_provider = query_provider
        self._count_query = count_query
        self._transacter = transacter
        self._listener = self._on_tables_changed
        self._observed: list[Query[Any]] = []
        self._observed_tables: set[str] = set()
        self._observe(count_query)

    @property
    def jumping_supported(self) -> bool:
        return True

    async def load(self, params: LoadParams) -> LoadResult[T]:
        """Load the window described by ``params``.

        Returns:
            The page, or ``Invalid`` if the source is (or became) stale

        Raises:
            OutOfBoundsError: If ``params.key`` is at or past the last row, or
                the window ends before the first row
            StoreError: If the count or window query fails
        """
        load_type = params.load_type.value
        if self.invalid:
            paging_loads_total.labels(load_type=load_type, outcome="invalid").inc()
            return Invalid()

        key = params.key if params.key is not None else 0

        with (
            tracer.start_as_current_span("paging.load") as span,
            paging_load_duration_seconds.labels(load_type=load_type).time(),
        ):
            span.set_attribute("paging.load_type", load_type)
            span.set_attribute("paging.key", key)
            span.set_attribute("paging.load_size", params.load_size)
            try:
                page = await self._load_page(key, params.load_size)
            except OutOfBoundsError as exc:
                paging_loads_total.labels(load_type=load_type, outcome="out_of_bounds").inc()
                logger.info(
                    "Page key out of bounds",
                    extra={"key": key, "total": exc.total, "load_size": params.load_size},
                )
                raise
            except StoreError as exc:
                paging_loads_total.labels(load_type=load_type, outcome="store_error").inc()
                logger.warning(
                    "Page load failed",
                    extra={"key": key, "operation": exc.operation, "error": str(exc.__cause__)},
                )
                raise
            span.set_attribute("paging.items", len(page.data))

        if self.invalid:
            paging_loads_total.labels(load_type=load_type, outcome="invalid").inc()
            return Invalid()

        paging_loads_total.labels(load_type=load_type, outcome="page").inc()
        logger.debug(
            "Page loaded",
            extra={
                "key": key,
                "load_size": params.load_size,
                "items": len(page.data),
                "prev_key": page.prev_key,
                "next_key": page.next_key,
            },
        )
        return page

    async def _load_page(self, key: int, load_size: int) -> Page[T]:
        # A negative key is the prev_key of a misaligned page: load the
        # short window that ends where that page started.
        offset = max(key, 0)
        limit = load_size + key if key < 0 else load_size

        operation = "begin"
        try:
            async with self._transacter.transaction() as session:
                operation = "count"
                total = await self._count_query.execute_as_one(session)
                trace.get_current_span().set_attribute("paging.total", total)
                if total == 0:
                    return Page.empty()
                if key >= total or limit <= 0:
                    raise OutOfBoundsError(key, total, load_size)

                operation = "fetch"
                query = self._query_provider(limit, offset)
                self._observe(query)
                data = await query.execute_as_list(session)
        except SQLAlchemyError as exc:
            raise StoreError(operation, exc) from exc

        end = offset + len(data)
        return Page(
            data=data,
            prev_key=None if offset == 0 else offset - load_size,
            next_key=None if end >= total or not data else end,
            items_before=offset,
            items_after=max(total - end, 0),
        )

    def get_refresh_key(self, state: PagingState[T]) -> int | None:
        """Centre the replacement's first window on the anchor position."""
        if state.anchor_position is None:
            return None
        return max(0, state.anchor_position - state.config.initial_load_size // 2)

    def _observe(self, query: Query[Any]) -> None:
        new_tables = [t for t in query.tables if t not in self._observed_tables]
        if not new_tables or self.invalid:
            return
        self._observed_tables.update(new_tables)
        self._observed.append(query)
        query.add_listener(self._listener)
        if self.invalid:
            # Lost a race with a notification: on_invalidated may have run
            # before this query was recorded.
            query.remove_listener(self._listener)

    def _on_tables_changed(self) -> None:
        self.invalidate()

    def on_invalidated(self) -> None:
        for query in self._observed:
            query.remove_listener(self._listener)
        logger.debug(
            "Stopped observing tables",
            extra={"tables": sorted(self._observed_tables)},
        )


def query_paging_source[T](
    statement: Select[Any],
    *,
    notifier: ChangeNotifier,
    transacter: Transacter,
    mapper: RowMapper[T] = first_column,
) -> OffsetQueryPagingSource[T]:
    """Build an offset paging source for ``statement``.

    Derives both the count query and the window query provider from the
    same statement, so they always cover the same rows.

    Example:
        source = query_paging_source(
            select(User).order_by(User.id),
            notifier=notifier,
            transacter=transacter,
        )
    """
    return OffsetQueryPagingSource(
        window_query_provider(statement, notifier, mapper),
        count_query(statement, notifier),
        transacter,
    )
