"""
Distributed tracing using OpenTelemetry.

Diff executions (count and each) run inside spans carrying the compared
tables, the number of rows scanned and the number of differences reported.
"""

from .context import add_span_event, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_event",
]
