"""Offset-based paging.

Turns a counted SQLAlchemy select into independently loadable pages:

    source = OffsetQueryPagingSource(
        window_query_provider(stmt, notifier),
        count_query(stmt, notifier),
        SessionTransacter(session_factory),
    )
    page = await source.load(LoadParams.refresh(None, 20))
    while page.next_key is not None:
        page = await source.load(LoadParams.append(page.next_key, 20))

The source invalidates itself when a table it reads changes; consumers then
build a new source and refresh from ``source.get_refresh_key(state)``.
"""

from offset_paging.core.paging.offset import OffsetQueryPagingSource, query_paging_source
from offset_paging.core.paging.params import (
    Invalid,
    LoadParams,
    LoadResult,
    LoadType,
    Page,
    PagingConfig,
    PagingState,
)
from offset_paging.core.paging.source import InvalidatedCallback, PagingSource

__all__ = [
    "Invalid",
    "InvalidatedCallback",
    "LoadParams",
    "LoadResult",
    "LoadType",
    "OffsetQueryPagingSource",
    "Page",
    "PagingConfig",
    "PagingSource",
    "PagingState",
    "query_paging_source",
]
