"""Main CLI entry point for offset-paging."""

import click

from offset_paging.cli.commands import pages
from offset_paging.infra.logging.config import setup_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="offset-paging")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Offset paging tools.

    \b
    Commands:
      pages   Print the pages of a table as JSON lines

    \b
    Quick Start:
      offset-paging pages items --url sqlite+aiosqlite:///./app.db --page-size 50
    """
    ctx.ensure_object(dict)
    setup_logging()


cli.add_command(pages.pages)


if __name__ == "__main__":
    cli()
