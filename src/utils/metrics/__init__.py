"""
Prometheus metrics for tablediff

Usage:
    from utils.metrics import DiffMetrics

    metrics = DiffMetrics()  # global registry
    metrics.record_run("each", "orders_backup", "orders", success=True, duration=1.2)
    metrics.record_difference("orders_backup", "orders", "modified")
"""

from .diff import DiffMetrics, get_diff_metrics
from .registry import get_or_create_metric

__all__ = [
    "DiffMetrics",
    "get_diff_metrics",
    "get_or_create_metric",
]
