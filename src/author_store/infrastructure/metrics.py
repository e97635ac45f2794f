"""Prometheus metrics for the indexed store and its HTTP API."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
    CollectorRegistry,
)


class MetricsRegistry:
    """Registry of all author store metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Transaction metrics
        self.transactions_total = Counter(
            "store_transactions_total",
            "Total number of closed transactions",
            ["mode", "status"],  # mode: read, write; status: commit, abort
            registry=self._registry,
        )

        self.transactions_active = Gauge(
            "store_transactions_active",
            "Number of open transactions",
            ["mode"],
            registry=self._registry,
        )

        self.write_lock_wait_seconds = Histogram(
            "store_write_lock_wait_seconds",
            "Time spent waiting for the write lock",
            buckets=(0.0001, 0.001, 0.01, 0.1, 0.5, 1.0, 5.0, 10.0),
            registry=self._registry,
        )

        self.write_lock_timeouts_total = Counter(
            "store_write_lock_timeouts_total",
            "Write transactions that gave up waiting for the lock",
            registry=self._registry,
        )

        # Table metrics
        self.inserts_total = Counter(
            "store_inserts_total",
            "Total insert operations",
            ["table", "status"],  # status: success, error
            registry=self._registry,
        )

        self.records = Gauge(
            "store_records",
            "Committed records per table",
            ["table"],
            registry=self._registry,
        )

        # Index metrics
        self.index_scans_total = Counter(
            "store_index_scans_total",
            "Total index scan operations",
            ["table", "index"],
            registry=self._registry,
        )

        # HTTP metrics
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests handled",
            ["route", "status_code"],
            registry=self._registry,
        )

        self.info = Info(
            "author_store",
            "Author store service information",
            registry=self._registry,
        )


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(port: int = 8001, registry: CollectorRegistry | None = None) -> MetricsRegistry:
    """
    Set up the Prometheus scrape endpoint.

    Args:
        port: Port for the metrics HTTP server
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    metrics = get_metrics() if registry is None else MetricsRegistry(registry)

    from author_store import __version__
    metrics.info.info({
        "version": __version__,
    })

    start_http_server(port, registry=registry or REGISTRY)

    return metrics


def get_metrics() -> MetricsRegistry:
    """Get the process-wide metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
