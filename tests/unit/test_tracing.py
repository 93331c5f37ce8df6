"""
Unit tests for utils.tracing

Spans are captured with a local TracerProvider and an in-memory exporter, so
the global provider is never touched.
"""

from unittest.mock import patch

import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from utils.tracing import add_span_event, trace_operation


@pytest.fixture
def exporter():
    span_exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    with patch("utils.tracing.context.get_tracer", return_value=provider.get_tracer("test")):
        yield span_exporter
    provider.shutdown()


class TestTraceOperation:
    """Test trace_operation"""

    def test_span_attributes(self, exporter):
        with trace_operation(
            "tablediff.each",
            kind=trace.SpanKind.CLIENT,
            source_table="orders_backup",
            columns=("a", "b"),
        ) as span:
            span.set_attribute("tablediff.differences", 3)

        (finished,) = exporter.get_finished_spans()
        assert finished.name == "tablediff.each"
        assert finished.kind == trace.SpanKind.CLIENT
        assert finished.attributes["source_table"] == "orders_backup"
        # Non-primitive values are stringified
        assert finished.attributes["columns"] == "('a', 'b')"
        assert finished.attributes["tablediff.differences"] == 3

    def test_error_recorded_and_reraised(self, exporter):
        """Test the exception is recorded on the span and propagates"""
        with pytest.raises(RuntimeError, match="connection lost"):
            with trace_operation("tablediff.count"):
                raise RuntimeError("connection lost")

        (finished,) = exporter.get_finished_spans()
        assert finished.attributes["error"] is True
        assert finished.attributes["error.type"] == "RuntimeError"
        assert finished.status.status_code == trace.StatusCode.ERROR
        assert [event.name for event in finished.events] == ["exception"]

    def test_span_event(self, exporter):
        with trace_operation("tablediff.each"):
            add_span_event("tablediff.stopped", reason="callback", id=7)

        (finished,) = exporter.get_finished_spans()
        event = finished.events[0]
        assert event.name == "tablediff.stopped"
        assert dict(event.attributes) == {"reason": "callback", "id": 7}

    def test_detached_span(self, exporter):
        """Test a span that is not current leaves nested spans unparented."""
        with trace_operation("tablediff.records", current=False) as outer:
            assert trace.get_current_span() is not outer
            with trace_operation("consumer.work"):
                pass

        inner, finished = exporter.get_finished_spans()
        assert finished.name == "tablediff.records"
        assert inner.parent is None
        assert finished.end_time is not None

    def test_detached_span_error(self, exporter):
        with pytest.raises(ValueError):
            with trace_operation("tablediff.records", current=False):
                raise ValueError("bad row")

        (finished,) = exporter.get_finished_spans()
        assert finished.attributes["error.type"] == "ValueError"
        assert finished.status.status_code == trace.StatusCode.ERROR


def test_add_span_event_without_span():
    """Test events outside a recording span are ignored"""
    add_span_event("tablediff.stopped", reason="max_results")
