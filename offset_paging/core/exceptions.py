"""Paging exceptions.

Custom exceptions raised by paging sources. They carry a human-readable
message plus a ``details`` mapping so callers and log records get the
offending key and counts without parsing the message.
"""
from __future__ import annotations

from typing import Any


class PagingError(Exception):
    """Base exception for paging operations.

    Attributes:
        message: Error description
        details: Additional context about the error
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize paging error.

        Args:
            message: Error description
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with details."""
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class OutOfBoundsError(PagingError, IndexError):
    """Requested key does not address any row of the data set.

    Raised when a load asks for a window starting at or after the last
    row (``key >= total`` with a non-empty data set), or for a window that
    ends before the first row. The key is never clamped: a silently moved
    window would desynchronize the caller's position from the data.

    Subclasses ``IndexError`` so generic sequence-style handlers still work.

    Attributes:
        key: The requested key
        total: Row count observed by the failing load
        load_size: Requested page size
    """

    def __init__(self, key: int, total: int, load_size: int):
        """Initialize out of bounds error.

        Args:
            key: The requested key
            total: Row count observed by the failing load
            load_size: Requested page size
        """
        self.key = key
        self.total = total
        self.load_size = load_size

        super().__init__(
            f"Key {key} is out of bounds for {total} rows",
            details={"key": key, "total": total, "load_size": load_size},
        )

    def __repr__(self) -> str:
        """Repr for debugging."""
        return (
            f"OutOfBoundsError(key={self.key!r}, total={self.total!r}, "
            f"load_size={self.load_size!r})"
        )


class StoreError(PagingError):
    """The count or window query failed in the store.

    Wraps the driver or SQLAlchemy exception, which stays available as
    ``__cause__``. Paging sources never retry; that belongs to the caller.
    """

    def __init__(self, operation: str, cause: BaseException):
        """Initialize store error.

        Args:
            operation: Query that failed ("count" or "fetch")
            cause: Underlying exception
        """
        self.operation = operation
        super().__init__(
            f"Paging {operation} query failed",
            details={"operation": operation, "error": type(cause).__name__},
        )
        self.__cause__ = cause


__all__ = [
    "OutOfBoundsError",
    "PagingError",
    "StoreError",
]
