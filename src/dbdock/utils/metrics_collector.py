"""Prometheus metrics collection for dbdock."""

from typing import Optional

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class MetricsCollector:
    """Collects and exposes Prometheus metrics for database lifecycle and polling."""

    def __init__(self):
        """Initialize metrics collector with all metrics."""
        # Counter metrics
        self.syncs_total = Counter(
            "dbdock_syncs_total",
            "Total number of container list refreshes",
            ["result"],
        )

        self.availability_probes_total = Counter(
            "dbdock_availability_probes_total",
            "Total number of Docker availability probes",
            ["result"],
        )

        self.operations_total = Counter(
            "dbdock_operations_total",
            "Total number of database lifecycle operations",
            ["operation", "result"],
        )

        self.databases_created_total = Counter(
            "dbdock_databases_created_total",
            "Total number of databases created",
            ["db_type"],
        )

        # Histogram metrics
        self.sync_duration_seconds = Histogram(
            "dbdock_sync_duration_seconds",
            "Container list refresh duration in seconds",
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
        )

        # Gauge metrics
        self.tracked_containers = Gauge(
            "dbdock_tracked_containers",
            "Number of databases in the local list",
        )

        self.runtime_available = Gauge(
            "dbdock_runtime_available",
            "Whether the Docker daemon was reachable at the last probe (1 or 0)",
        )

    def record_sync(self, result: str, duration_seconds: float | None = None) -> None:
        """
        Record a container list refresh.

        Args:
            result: Refresh outcome (success, failure, stale)
            duration_seconds: Time spent fetching, if measured
        """
        self.syncs_total.labels(result=result).inc()
        if duration_seconds is not None:
            self.sync_duration_seconds.observe(duration_seconds)

    def record_availability_probe(self, available: bool) -> None:
        """
        Record an availability probe and update the availability gauge.

        Args:
            available: Whether Docker answered as running
        """
        self.availability_probes_total.labels(
            result="available" if available else "unavailable"
        ).inc()
        self.runtime_available.set(1 if available else 0)

    def record_operation(self, operation: str, result: str) -> None:
        """
        Record a lifecycle operation.

        Args:
            operation: Operation name (create, update, start, stop, remove)
            result: Outcome (success, failure)
        """
        self.operations_total.labels(operation=operation, result=result).inc()

    def record_database_created(self, db_type: str) -> None:
        """
        Record a successfully created database.

        Args:
            db_type: Provider id of the new database
        """
        self.databases_created_total.labels(db_type=db_type).inc()

    def set_tracked_containers(self, count: int) -> None:
        """
        Set the number of databases in the local list.

        Args:
            count: Number of tracked databases
        """
        self.tracked_containers.set(count)

    def get_metrics(self) -> bytes:
        """
        Get current metrics in Prometheus format.

        Returns:
            Metrics data in bytes
        """
        return generate_latest()


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """
    Get the global metrics collector instance.

    Returns:
        MetricsCollector instance
    """
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector
