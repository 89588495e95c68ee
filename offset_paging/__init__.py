"""Offset-based paging sources over SQLAlchemy queries.

Example:
    from offset_paging import (
        ChangeNotifier,
        LoadParams,
        SessionTransacter,
        create_engine,
        create_session_factory,
        query_paging_source,
    )

    engine = create_engine()
    notifier = ChangeNotifier()
    notifier.attach(engine)

    source = query_paging_source(
        select(items.c.value).order_by(items.c.value),
        notifier=notifier,
        transacter=SessionTransacter(create_session_factory(engine)),
    )
    page = await source.load(LoadParams.refresh(None, 20))
"""

from offset_paging.core.exceptions import OutOfBoundsError, PagingError, StoreError
from offset_paging.core.paging import (
    Invalid,
    LoadParams,
    LoadResult,
    LoadType,
    OffsetQueryPagingSource,
    Page,
    PagingConfig,
    PagingSource,
    PagingState,
    query_paging_source,
)
from offset_paging.core.queries import Query, count_query, window_query_provider
from offset_paging.infra.database import (
    ChangeNotifier,
    SessionTransacter,
    Transacter,
    create_engine,
    create_session_factory,
)

__version__ = "0.1.0"

__all__ = [
    "ChangeNotifier",
    "Invalid",
    "LoadParams",
    "LoadResult",
    "LoadType",
    "OffsetQueryPagingSource",
    "OutOfBoundsError",
    "Page",
    "PagingConfig",
    "PagingError",
    "PagingSource",
    "PagingState",
    "Query",
    "SessionTransacter",
    "StoreError",
    "Transacter",
    "count_query",
    "create_engine",
    "create_session_factory",
    "query_paging_source",
    "window_query_provider",
]
