"""
Metrics for table diff executions.

Tracks runs, scanned rows, reported differences by kind and rows
suppressed by fuzzy matching.
"""

import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

from .registry import get_or_create_metric

logger = logging.getLogger(__name__)

TABLE_LABELS = ["source_table", "dest_table"]


class DiffMetrics:
    """
    Metrics for table diff executions

    Metrics are registered idempotently, so several instances can share a
    registry.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize diff metrics

        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.runs_total = get_or_create_metric(
            lambda: Counter(
                "tablediff_runs_total",
                "Total number of diff executions",
                ["operation", "status", *TABLE_LABELS],
                registry=self.registry,
            ),
            "tablediff_runs_total",
            self.registry,
        )

        self.run_duration_seconds = get_or_create_metric(
            lambda: Histogram(
                "tablediff_run_duration_seconds",
                "Duration of diff executions in seconds",
                ["operation", *TABLE_LABELS],
                buckets=(0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30, 60, 300, 600, 1800),
                registry=self.registry,
            ),
            "tablediff_run_duration_seconds",
            self.registry,
        )

        self.rows_scanned_total = get_or_create_metric(
            lambda: Counter(
                "tablediff_rows_scanned_total",
                "Rows returned by the diff query and decoded",
                TABLE_LABELS,
                registry=self.registry,
            ),
            "tablediff_rows_scanned_total",
            self.registry,
        )

        self.differences_total = get_or_create_metric(
            lambda: Counter(
                "tablediff_differences_total",
                "Differences reported, by kind",
                [*TABLE_LABELS, "kind"],
                registry=self.registry,
            ),
            "tablediff_differences_total",
            self.registry,
        )

        self.rows_suppressed_total = get_or_create_metric(
            lambda: Counter(
                "tablediff_rows_suppressed_total",
                "Rows judged equal by fuzzy matching",
                TABLE_LABELS,
                registry=self.registry,
            ),
            "tablediff_rows_suppressed_total",
            self.registry,
        )

    def record_run(
        self,
        operation: str,
        source_table: str,
        dest_table: str,
        success: bool,
        duration: float,
    ) -> None:
        """
        Record a finished count/each execution

        Args:
            operation: "count" or "each"
            source_table: Source table label
            dest_table: Destination table label
            success: Whether the execution completed without error
            duration: Duration in seconds
        """
        status = "success" if success else "failed"
        self.runs_total.labels(
            operation=operation,
            status=status,
            source_table=source_table,
            dest_table=dest_table,
        ).inc()
        self.run_duration_seconds.labels(
            operation=operation,
            source_table=source_table,
            dest_table=dest_table,
        ).observe(duration)

    def record_scanned(self, source_table: str, dest_table: str, rows: int = 1) -> None:
        self.rows_scanned_total.labels(source_table=source_table, dest_table=dest_table).inc(rows)

    def record_difference(self, source_table: str, dest_table: str, kind: str) -> None:
        self.differences_total.labels(
            source_table=source_table, dest_table=dest_table, kind=kind
        ).inc()

    def record_suppressed(self, source_table: str, dest_table: str) -> None:
        self.rows_suppressed_total.labels(source_table=source_table, dest_table=dest_table).inc()


_default_metrics: DiffMetrics | None = None


def get_diff_metrics() -> DiffMetrics:
    """Return the process-wide DiffMetrics bound to the global registry."""
    global _default_metrics
    if _default_metrics is None:
        _default_metrics = DiffMetrics()
    return _default_metrics
