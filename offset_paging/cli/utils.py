"""Helpers shared by CLI commands."""

import asyncio
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any

import click


def coro[T](f: Callable[..., Awaitable[T]]) -> Callable[..., T]:
    """Run an async Click command callback with ``asyncio.run``.

    Usage:
        @cli.command()
        @coro
        async def my_command():
            click.echo(await some_async_function())
    """

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def error(message: str) -> None:
    """Print an error message in red."""
    click.secho(f"✗ {message}", fg="red", err=True)


def info(message: str) -> None:
    """Print an info message in blue to stderr, keeping stdout for data."""
    click.secho(f"ℹ {message}", fg="blue", err=True)
