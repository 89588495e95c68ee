"""Prometheus metrics for paging sources."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram

# Custom registry so embedding applications decide what they expose
REGISTRY = CollectorRegistry()

# Covers load times from 1ms to 10s
DEFAULT_LATENCY_BUCKETS = (
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
)

paging_loads_total = Counter(
    "paging_loads_total",
    "Total page loads by load type and outcome (page, invalid, out_of_bounds, store_error)",
    ["load_type", "outcome"],
    registry=REGISTRY,
)

paging_load_duration_seconds = Histogram(
    "paging_load_duration_seconds",
    "Duration of a page load including count and window queries",
    ["load_type"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

paging_invalidations_total = Counter(
    "paging_invalidations_total",
    "Total paging sources invalidated",
    registry=REGISTRY,
)

paging_notifications_total = Counter(
    "paging_notifications_total",
    "Total table change notifications dispatched",
    ["table"],
    registry=REGISTRY,
)
