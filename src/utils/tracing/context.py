"""
Context managers and utilities for span management.

Provides a context manager for creating spans and a helper that adds
events to the current span without an explicit reference.
"""

from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from .tracer import get_tracer


def _attribute_value(value: Any) -> Any:
    # OpenTelemetry accepts primitives only
    if isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


@contextmanager
def _ended_on_exit(span: trace.Span):
    """Own a span that was started without being attached to the context."""
    try:
        yield span
    finally:
        span.end()


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    current: bool = True,
    **attributes,
):
    """
    Context manager for tracing operations.

    Creates a span, adds attributes, records any exception raised inside the
    block and re-raises it.

    Args:
        operation_name: Name of the operation being traced
        kind: Span kind (INTERNAL, CLIENT, SERVER, etc.)
        current: Make the span current for the block. Generators that yield
            inside the block pass False so the consumer's spans are not
            parented to it
        **attributes: Custom attributes to add to the span

    Yields:
        Span instance for adding custom events/attributes

    Example:
        >>> with trace_operation("tablediff.count", source_table="orders") as span:
        ...     total = engine.count()
        ...     span.set_attribute("tablediff.count", total)
    """
    tracer = get_tracer()

    if current:
        manager = tracer.start_as_current_span(
            operation_name,
            kind=kind,
            record_exception=False,
            set_status_on_exception=True,
        )
    else:
        manager = _ended_on_exit(tracer.start_span(operation_name, kind=kind))

    with manager as span:
        for key, value in attributes.items():
            span.set_attribute(key, _attribute_value(value))

        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, f"{type(e).__name__}: {e}"))
            raise


def add_span_event(name: str, **attributes):
    """
    Add an event to the current span.

    Args:
        name: Event name
        **attributes: Event attributes
    """
    current_span = trace.get_current_span()
    if current_span.is_recording():
        attrs = {k: _attribute_value(v) for k, v in attributes.items()}
        current_span.add_event(name, attributes=attrs)
