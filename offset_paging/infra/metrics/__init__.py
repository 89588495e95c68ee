"""Metrics for paging sources."""

from offset_paging.infra.metrics.prometheus import (
    REGISTRY,
    paging_invalidations_total,
    paging_load_duration_seconds,
    paging_loads_total,
    paging_notifications_total,
)

__all__ = [
    "REGISTRY",
    "paging_invalidations_total",
    "paging_load_duration_seconds",
    "paging_loads_total",
    "paging_notifications_total",
]
