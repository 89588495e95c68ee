"""Pydantic Settings v2 configuration.

Each domain has its own frozen settings model and environment prefix:
    - PagingSettings (PAGING_)
    - DatabaseSettings (DB_)
    - LoggingSettings (LOG_)

Import settings via the cached loaders:
    from offset_paging.core.settings import get_paging_settings
"""

from __future__ import annotations

from .database import DatabaseSettings
from .loader import (
    clear_all_caches,
    get_db_settings,
    get_logging_settings,
    get_paging_settings,
)
from .logs import LoggingSettings
from .paging import PagingSettings

__all__ = [
    "DatabaseSettings",
    "LoggingSettings",
    "PagingSettings",
    "clear_all_caches",
    "get_db_settings",
    "get_logging_settings",
    "get_paging_settings",
]
