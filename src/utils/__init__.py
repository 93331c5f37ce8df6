"""
Operational utilities for tablediff

Provides:
- logging: Console/JSON logging setup
- tracing: OpenTelemetry spans around diff executions
- metrics: Prometheus counters and histograms for diff executions
"""

__all__ = ["logging", "tracing", "metrics"]
