"""Paging source base class with one-shot invalidation."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING

from offset_paging.infra.metrics import paging_invalidations_total

if TYPE_CHECKING:
    from offset_paging.core.paging.params import LoadParams, LoadResult, PagingState

logger = logging.getLogger(__name__)

InvalidatedCallback = Callable[[], None]


class PagingSource[K, T](ABC):
    """Loads pages of ``T`` addressed by keys of type ``K``.

    A source moves from valid to invalid exactly once and never back.
    Consumers register a callback to learn when to replace it.

    Example:
        source.register_invalidated_callback(lambda: pager.refresh())
        result = await source.load(LoadParams.refresh(None, 20))
    """

    def __init__(self) -> None:
        """Initialize a valid source."""
        self._invalid = False
        self._lock = threading.Lock()
        self._callbacks: list[InvalidatedCallback] = []

    @property
    def invalid(self) -> bool:
        """Whether this source has been invalidated."""
        return self._invalid

    @property
    def jumping_supported(self) -> bool:
        """Whether refreshes may start at an arbitrary key."""
        return False

    def register_invalidated_callback(self, callback: InvalidatedCallback) -> None:
        """Call ``callback`` once when the source is invalidated.

        If the source is already invalid the callback runs immediately.
        """
        with self._lock:
            if not self._invalid:
                self._callbacks.append(callback)
                return
        callback()

    def unregister_invalidated_callback(self, callback: InvalidatedCallback) -> None:
        """Forget ``callback``. Unknown callbacks are ignored."""
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def invalidate(self) -> None:
        """Mark the source invalid and notify callbacks.

        Idempotent: only the first call has any effect.
        """
        with self._lock:
            if self._invalid:
                return
            self._invalid = True
            callbacks, self._callbacks = self._callbacks, []

        paging_invalidations_total.inc()
        logger.debug(
            "Paging source invalidated",
            extra={"source": type(self).__name__, "callbacks": len(callbacks)},
        )
        self.on_invalidated()
        for callback in callbacks:
            callback()

    def on_invalidated(self) -> None:
        """Hook run once, right after the source becomes invalid."""

    @abstractmethod
    async def load(self, params: LoadParams) -> LoadResult[T]:
        """Load the page described by ``params``."""
        ...

    @abstractmethod
    def get_refresh_key(self, state: PagingState[T]) -> K | None:
        """Key a replacement source should refresh from, or ``None``."""
        ...
