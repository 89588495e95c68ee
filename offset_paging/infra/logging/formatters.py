"""Logging formatters with trace correlation."""
from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from opentelemetry import trace

# LogRecord attributes that never belong in the JSON payload as extras
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    }
)


class JSONFormatter(logging.Formatter):
    """JSON Lines formatter with UTC timestamps.

    Every record becomes one JSON object on one line. Fields passed through
    ``extra=`` (for example ``key``, ``total`` or ``tables`` from the paging
    source) are copied into the object, and the active OpenTelemetry span,
    if any, contributes ``trace_id`` and ``span_id``.

    Example output:
        {"level": "DEBUG", "logger": "offset_paging.core.paging.offset",
         "message": "Page loaded", "timestamp": "2026-01-01T00:00:00.123Z",
         "service": "offset-paging", "key": 4, "total": 10}
    """

    def __init__(
        self,
        fmt_keys: dict[str, str] | None = None,
        static: dict[str, Any] | None = None,
    ) -> None:
        """Initialize JSON formatter.

        Args:
            fmt_keys: Mapping of output keys to LogRecord attributes.
            static: Fields added to every record (e.g., {"service": "api"}).
        """
        super().__init__()
        self.fmt_keys = fmt_keys or {
            "level": "levelname",
            "logger": "name",
            "message": "message",
        }
        self.static = static or {}

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single JSON line."""
        record.message = record.getMessage()
        data: dict[str, Any] = {
            k: getattr(record, v, None) for k, v in self.fmt_keys.items()
        }
        data["timestamp"] = (
            datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            data["trace_id"] = format(span_context.trace_id, "032x")
            data["span_id"] = format(span_context.span_id, "016x")

        if record.exc_info:
            # Keep one record per line
            data["exception"] = self.formatException(record.exc_info).replace("\n", "\\n")
        if record.stack_info:
            data["stack_trace"] = record.stack_info.replace("\n", "\\n")

        data.update(self.static)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in data:
                data[key] = value

        return json.dumps(data, ensure_ascii=False, default=str)
