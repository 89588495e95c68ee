"""Page through a database table from the command line."""
from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click
from sqlalchemy import MetaData, Table, select
from sqlalchemy.exc import NoSuchTableError

from offset_paging.cli.utils import coro, error, info
from offset_paging.core.exceptions import PagingError
from offset_paging.core.paging import Invalid, LoadParams, query_paging_source
from offset_paging.core.settings import DatabaseSettings, get_db_settings, get_paging_settings
from offset_paging.infra.database import (
    ChangeNotifier,
    SessionTransacter,
    create_engine,
    create_session_factory,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Row

    from offset_paging.core.paging import Page


def _row_to_dict(row: Row[Any]) -> dict[str, Any]:
    return dict(row._mapping)


def _page_to_json(page: Page[dict[str, Any]]) -> str:
    return json.dumps(
        {
            "data": list(page.data),
            "prev_key": page.prev_key,
            "next_key": page.next_key,
            "items_before": page.items_before,
            "items_after": page.items_after,
        },
        default=str,
    )


@click.command()
@click.argument("table_name")
@click.option("--url", default=None, help="Async database URL (defaults to DB_URL).")
@click.option(
    "--order-by",
    "order_by",
    multiple=True,
    help="Column(s) to order by. Defaults to the primary key.",
)
@click.option("--page-size", type=click.IntRange(min=1), default=None, help="Rows per page.")
@click.option("--key", type=int, default=None, help="Offset of the first page.")
@click.option(
    "--direction",
    type=click.Choice(["forward", "backward"]),
    default="forward",
    show_default=True,
    help="Follow next_key (forward) or prev_key (backward).",
)
@click.option("--max-pages", type=click.IntRange(min=1), default=None, help="Stop after N pages.")
@coro
async def pages(
    table_name: str,
    url: str | None,
    order_by: tuple[str, ...],
    page_size: int | None,
    key: int | None,
    direction: str,
    max_pages: int | None,
) -> None:
    """Print the pages of TABLE_NAME as JSON lines.

    Example:
        offset-paging pages items --page-size 2 --key 1 --direction backward
    """
    paging_settings = get_paging_settings()
    size = min(page_size or paging_settings.default_page_size, paging_settings.max_page_size)
    db_settings = DatabaseSettings(url=url) if url else get_db_settings()

    engine = create_engine(db_settings)
    try:
        try:
            async with engine.connect() as conn:
                table = await conn.run_sync(
                    lambda sync_conn: Table(table_name, MetaData(), autoload_with=sync_conn)
                )
        except NoSuchTableError:
            error(f"Table not found: {table_name}")
            raise click.Abort() from None

        if order_by:
            missing = [name for name in order_by if name not in table.c]
            if missing:
                error(f"Column not found: {', '.join(missing)}")
                raise click.Abort()
            columns = [table.c[name] for name in order_by]
        else:
            columns = list(table.primary_key)
            if not columns:
                # Offsets are only stable under a total order
                error(f"Table {table_name} has no primary key; pass --order-by")
                raise click.Abort()
        statement = select(table).order_by(*columns)

        notifier = ChangeNotifier()
        source = query_paging_source(
            statement,
            notifier=notifier,
            transacter=SessionTransacter(create_session_factory(engine)),
            mapper=_row_to_dict,
        )

        params = LoadParams.refresh(key, size)
        loaded = 0
        while True:
            try:
                result = await source.load(params)
            except PagingError as e:
                error(str(e))
                raise click.Abort() from e
            if isinstance(result, Invalid):
                error("Paging source was invalidated")
                raise click.Abort()

            click.echo(_page_to_json(result))
            loaded += 1

            next_key = result.next_key if direction == "forward" else result.prev_key
            if next_key is None or (max_pages is not None and loaded >= max_pages):
                break
            if direction == "forward":
                params = LoadParams.append(next_key, size)
            else:
                params = LoadParams.prepend(next_key, size)

        info(f"{loaded} page(s) of {size} from {table_name}")
    finally:
        await engine.dispose()
