"""Prometheus metrics instrumentation."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

REGISTRY = CollectorRegistry()

EMBEDDED_RECORDS = Counter(
    "catsearch_embedded_records_total",
    "Records whose embedding was written during batch runs",
    labelnames=("namespace",),
    registry=REGISTRY,
)

FAILED_BATCHES = Counter(
    "catsearch_failed_batches_total",
    "Embedding batches aborted because every provider failed",
    labelnames=("namespace",),
    registry=REGISTRY,
)

PROVIDER_FAILOVERS = Counter(
    "catsearch_provider_failovers_total",
    "Calls retried against the secondary provider",
    labelnames=("operation",),
    registry=REGISTRY,
)

SEARCH_LATENCY = Histogram(
    "catsearch_search_latency_seconds",
    "End-to-end latency of similarity searches",
    labelnames=("namespace",),
    registry=REGISTRY,
)

SEARCH_FALLBACKS = Counter(
    "catsearch_search_fallbacks_total",
    "Searches where lexical filtering fell back to similarity order",
    labelnames=("namespace",),
    registry=REGISTRY,
)

INDEX_SIZE = Gauge(
    "catsearch_index_records",
    "Number of embedding records stored in the index",
    labelnames=("namespace",),
    registry=REGISTRY,
)


def metrics_text() -> str:
    """Render metrics in the Prometheus exposition format."""
    return generate_latest(REGISTRY).decode("utf-8")


__all__ = [
    "REGISTRY",
    "EMBEDDED_RECORDS",
    "FAILED_BATCHES",
    "PROVIDER_FAILOVERS",
    "SEARCH_LATENCY",
    "SEARCH_FALLBACKS",
    "INDEX_SIZE",
    "metrics_text",
]
