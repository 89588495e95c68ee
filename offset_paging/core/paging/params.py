"""Load requests, load results and consumer-side paging state."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from offset_paging.core.settings import PagingSettings


class LoadType(StrEnum):
    """Why the consumer is asking for a page."""

    REFRESH = "refresh"
    APPEND = "append"
    PREPEND = "prepend"


@dataclass(slots=True, frozen=True)
class LoadParams:
    """A single page request.

    Attributes:
        load_type: Refresh, append (after the last page) or prepend
        key: Offset to load from; ``None`` means the start of the data set
            and is only allowed for refreshes
        load_size: Requested number of items
        placeholders_enabled: Whether the consumer renders placeholders

    Example:
        params = LoadParams.refresh(None, 20)
        params = LoadParams.append(page.next_key, 20)
    """

    load_type: LoadType
    key: int | None
    load_size: int
    placeholders_enabled: bool = True

    def __post_init__(self) -> None:
        if self.load_size <= 0:
            msg = f"load_size must be positive, got {self.load_size}"
            raise ValueError(msg)
        if self.key is None and self.load_type is not LoadType.REFRESH:
            msg = f"{self.load_type} loads require a key"
            raise ValueError(msg)

    @property
    def is_prepend(self) -> bool:
        """Whether this load extends the list backwards."""
        return self.load_type is LoadType.PREPEND

    @classmethod
    def refresh(
        cls, key: int | None, load_size: int, placeholders_enabled: bool = True
    ) -> LoadParams:
        return cls(LoadType.REFRESH, key, load_size, placeholders_enabled)

    @classmethod
    def append(cls, key: int, load_size: int, placeholders_enabled: bool = True) -> LoadParams:
        return cls(LoadType.APPEND, key, load_size, placeholders_enabled)

    @classmethod
    def prepend(cls, key: int, load_size: int, placeholders_enabled: bool = True) -> LoadParams:
        return cls(LoadType.PREPEND, key, load_size, placeholders_enabled)


@dataclass(slots=True, frozen=True)
class Page[T]:
    """One loaded window of the data set.

    Attributes:
        data: Items in data set order
        prev_key: Key of the preceding window, ``None`` at the start. May be
            negative after a misaligned load; the next load turns it into a
            short window ending at offset 0.
        next_key: Key of the following window, ``None`` at the end
        items_before: Number of items preceding ``data``
        items_after: Number of items following ``data``
    """

    data: Sequence[T]
    prev_key: int | None
    next_key: int | None
    items_before: int = 0
    items_after: int = 0

    @classmethod
    def empty(cls) -> Page[T]:
        """Page for an empty data set."""
        return cls(data=[], prev_key=None, next_key=None, items_before=0, items_after=0)


@dataclass(slots=True, frozen=True)
class Invalid:
    """Result of a load on (or invalidated during) a stale source.

    The consumer should discard the source and create a new one.
    """


type LoadResult[T] = Page[T] | Invalid


@dataclass(slots=True, frozen=True)
class PagingConfig:
    """Consumer paging configuration.

    Attributes:
        page_size: Items per append/prepend load
        initial_load_size: Items requested by the first refresh
        enable_placeholders: Whether surrounding counts are rendered
    """

    page_size: int
    initial_load_size: int = 0
    enable_placeholders: bool = True

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            msg = f"page_size must be positive, got {self.page_size}"
            raise ValueError(msg)
        if self.initial_load_size <= 0:
            # Frozen dataclass: bypass __setattr__ for the derived default
            object.__setattr__(self, "initial_load_size", self.page_size * 3)

    @classmethod
    def from_settings(
        cls, settings: PagingSettings | None = None, page_size: int | None = None
    ) -> PagingConfig:
        """Build a config from PagingSettings, clamping to ``max_page_size``."""
        if settings is None:
            from offset_paging.core.settings import get_paging_settings

            settings = get_paging_settings()
        size = min(page_size or settings.default_page_size, settings.max_page_size)
        return cls(
            page_size=size,
            initial_load_size=size * settings.initial_load_size_multiplier,
            enable_placeholders=settings.enable_placeholders,
        )


@dataclass(slots=True, frozen=True)
class PagingState[T]:
    """Snapshot of what the consumer has loaded.

    Attributes:
        pages: Loaded pages in order
        anchor_position: Most recently accessed position, counted from the
            start of the data set (placeholders included)
        config: Paging configuration in use
    """

    pages: list[Page[T]] = field(default_factory=list)
    anchor_position: int | None = None
    config: PagingConfig = field(default_factory=lambda: PagingConfig(page_size=20))
