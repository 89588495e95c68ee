"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the
process.

Testing:
    In tests, clear the cache to force reload:
    get_paging_settings.cache_clear()
"""

from __future__ import annotations

from functools import lru_cache

from .database import DatabaseSettings
from .logs import LoggingSettings
from .paging import PagingSettings


@lru_cache(maxsize=1)
def get_paging_settings() -> PagingSettings:
    """Get cached paging settings.

    Returns:
        Validated and frozen PagingSettings instance.
    """
    return PagingSettings()


@lru_cache(maxsize=1)
def get_db_settings() -> DatabaseSettings:
    """Get cached database settings.

    Returns:
        Validated and frozen DatabaseSettings instance.
    """
    return DatabaseSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


def clear_all_caches() -> None:
    """Drop every cached settings instance (used by tests)."""
    get_paging_settings.cache_clear()
    get_db_settings.cache_clear()
    get_logging_settings.cache_clear()
