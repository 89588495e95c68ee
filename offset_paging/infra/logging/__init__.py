"""Logging infrastructure.

Library code logs through the standard library:

    import logging

    logger = logging.getLogger(__name__)
    logger.info("Page loaded", extra={"key": 4, "total": 10})

Entrypoints call ``setup_logging()`` once to install the JSON Lines (or
plain text) handler on the root logger.
"""

from offset_paging.infra.logging.config import (
    configure_logging,
    reset_logging_state,
    setup_logging,
)
from offset_paging.infra.logging.formatters import JSONFormatter

__all__ = [
    "JSONFormatter",
    "configure_logging",
    "reset_logging_state",
    "setup_logging",
]
