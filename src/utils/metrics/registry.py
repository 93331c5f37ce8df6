"""Idempotent metric registration."""

from typing import Callable, TypeVar

from prometheus_client import REGISTRY, CollectorRegistry

T = TypeVar("T")


def get_or_create_metric(
    metric_factory: Callable[[], T],
    metric_name: str,
    registry: CollectorRegistry = REGISTRY,
) -> T:
    """
    Create a metric, or return the one already registered under that name.

    Args:
        metric_factory: Callable that creates the metric (e.g., lambda: Counter(...))
        metric_name: Name of the metric for lookup if already registered
        registry: Prometheus registry to use (default: global REGISTRY)

    Returns:
        The metric instance (either newly created or existing)

    Example:
        RUNS = get_or_create_metric(
            lambda: Counter("tablediff_runs_total", "Diff runs", ["operation"]),
            "tablediff_runs_total",
        )
    """
    try:
        return metric_factory()
    except ValueError:
        # Already registered
        existing = registry._names_to_collectors.get(metric_name)
        if existing is not None:
            return existing
        raise
