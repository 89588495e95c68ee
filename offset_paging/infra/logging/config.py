"""Logging configuration setup.

Configures the root logger through ``logging.config.dictConfig``. Library
modules only ever call ``logging.getLogger(__name__)``; handlers live on the
root logger and application loggers propagate up.
"""

from __future__ import annotations

import logging
import logging.config
from typing import TYPE_CHECKING, Any

logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False

if TYPE_CHECKING:
    from offset_paging.core.settings.logs import LoggingSettings

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    settings_obj = log_settings
    if settings_obj is None:
        from offset_paging.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    log_config = {**settings_obj.to_logging_kwargs(), **configure_kwargs}
    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    service_name: str = "offset-paging",
    capture_warnings: bool = True,
) -> None:
    """Configure the root logger with a single stderr handler.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: Emit JSON Lines instead of plain text.
        service_name: Static ``service`` field added to JSON records.
        capture_warnings: Forward Python warnings to the logging system.

    Example:
        configure_logging(log_level="DEBUG", json_logs=False)
    """
    if capture_warnings:
        logging.captureWarnings(True)

    logging.config.dictConfig(_build_config(log_level, json_logs, service_name))
    logger.debug(
        "Logging configured",
        extra={"log_level": log_level.upper(), "json_logs": json_logs},
    )


def _build_config(log_level: str, json_logs: bool, service_name: str) -> dict[str, Any]:
    formatters: dict[str, Any] = {
        "text": {"format": TEXT_FORMAT},
        "json": {
            "()": "offset_paging.infra.logging.formatters.JSONFormatter",
            "static": {"service": service_name},
        },
    }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "json" if json_logs else "text",
            },
        },
        "root": {
            "level": log_level.upper(),
            "handlers": ["console"],
        },
    }


def reset_logging_state() -> None:
    """Allow setup_logging() to run again (used by tests)."""
    global _LOGGING_INITIALIZED
    _LOGGING_INITIALIZED = False
