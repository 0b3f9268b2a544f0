"""
Unit tests for the Tracer orchestrator.
"""

import asyncio
import logging

import pytest

from trace_debugger import (
    ConsoleExporter,
    InMemoryExporter,
    NullExporter,
    Tracer,
    TracerConfig,
    create_tracer,
)
from trace_debugger.errors import AlreadyFinishedError, NoActiveTraceError, TraceNotFoundError
from trace_debugger.environment import EnvironmentStats
from trace_debugger.exporters import TraceExporter
from trace_debugger.models import SpanStatus, TraceStatus
from trace_debugger.store import TraceStore


class FailingExporter(TraceExporter):
    def export(self, trace, metrics=None):
        raise IOError("collector unreachable")


class UnreadableEnvironmentStats(EnvironmentStats):
    def memory_used_mb(self):
        raise PermissionError("no access to /proc")


class TestTracerLifecycle:
    """Test cases for opening, driving and finishing traces."""

    def test_start_trace_is_active(self, tracer):
        """Test that a started trace is tracked until finished."""
        trace = tracer.start_trace("test-operation")

        assert trace.status == TraceStatus.RUNNING
        assert tracer.active_traces == [trace]
        assert tracer.get_trace(trace.trace_id) is None

    def test_finish_trace_stores_and_exports(self, tracer, exporter):
        """Test that finishing moves the trace from the active set to the store."""
        trace = tracer.start_trace("test-operation")

        finished = tracer.finish_trace(trace.trace_id)

        assert finished is trace
        assert finished.status == TraceStatus.COMPLETED
        assert tracer.active_traces == []
        assert tracer.get_trace(trace.trace_id) is trace
        assert exporter.traces == [trace]
        assert exporter.exported[0][1] is not None

    def test_span_operations_through_handle(self, tracer, clock):
        """Test that span calls are routed to the trace named by the handle."""
        first = tracer.start_trace("first")
        second = tracer.start_trace("second")

        span = tracer.start_span(second.trace_id, "work")
        clock.advance(15)
        ended = tracer.end_span(second.trace_id)

        assert ended is span
        assert span.duration_ms == 15
        assert tracer.active_traces == [first, second]
        assert len(first.spans) == 1
        assert second.children_of(second.root_span) == [span]

    def test_end_span_records_error(self, tracer):
        trace = tracer.start_trace("op")
        span = tracer.start_span(trace.trace_id, "step")
        error = KeyError("missing")

        tracer.end_span(trace.trace_id, error)

        assert span.status == SpanStatus.ERROR
        assert span.error is error

    def test_nested_spans(self, tracer):
        """Test that sibling spans hang off the root."""
        trace = tracer.start_trace("main-operation")

        trace.start_span("child-operation-1")
        trace.end_span()
        trace.start_span("child-operation-2")
        trace.end_span()
        tracer.finish_trace(trace.trace_id)

        assert len(trace.children_of(trace.root_span)) == 2

    def test_finish_trace_with_error(self, tracer):
        """Test that a trace finished with an error is failed and keeps the error."""
        trace = tracer.start_trace("op")
        error = RuntimeError("payment failed")

        tracer.finish_trace(trace.trace_id, error)

        stored = tracer.get_trace(trace.trace_id)
        assert stored.status == TraceStatus.FAILED
        assert stored.error is error


class TestTracerErrors:
    """Test cases for misuse of the tracer API."""

    def test_start_span_unknown_trace(self, tracer):
        with pytest.raises(NoActiveTraceError) as exc_info:
            tracer.start_span("trace-unknown", "work")

        assert exc_info.value.trace_id == "trace-unknown"

    def test_end_span_unknown_trace(self, tracer):
        with pytest.raises(NoActiveTraceError):
            tracer.end_span("trace-unknown")

    def test_span_on_finished_trace(self, tracer):
        """Test that a finished trace no longer accepts span calls through the tracer."""
        trace = tracer.start_trace("op")
        tracer.finish_trace(trace.trace_id)

        with pytest.raises(NoActiveTraceError):
            tracer.start_span(trace.trace_id, "late")

    def test_finish_unknown_trace(self, tracer):
        with pytest.raises(TraceNotFoundError) as exc_info:
            tracer.finish_trace("trace-unknown")

        assert exc_info.value.trace_id == "trace-unknown"

    def test_finish_twice(self, tracer):
        """Test that a trace can only be finished through the tracer once."""
        trace = tracer.start_trace("op")
        tracer.finish_trace(trace.trace_id)

        with pytest.raises(TraceNotFoundError):
            tracer.finish_trace(trace.trace_id)

    def test_extra_end_span_through_tracer(self, tracer):
        """Test that over-ending a trace raises once the root has ended."""
        trace = tracer.start_trace("op")
        tracer.end_span(trace.trace_id)

        with pytest.raises(AlreadyFinishedError):
            tracer.end_span(trace.trace_id)

        assert trace.current_span is trace.root_span
        assert tracer.active_traces == [trace]

    def test_export_failure_is_logged(self, caplog):
        """Test that exporter errors do not escape finish_trace."""
        tracer = Tracer(TracerConfig(service_name="svc"), exporter=FailingExporter())
        trace = tracer.start_trace("op")

        with caplog.at_level(logging.ERROR):
            finished = tracer.finish_trace(trace.trace_id)

        assert finished.status == TraceStatus.COMPLETED
        assert tracer.get_trace(trace.trace_id) is trace
        assert "Failed to export trace" in caplog.text

    def test_metrics_failure_is_logged(self, clock, id_generator, exporter, caplog):
        """Test that a failing memory sampler does not escape finish_trace."""
        tracer = Tracer(
            TracerConfig(service_name="svc"),
            clock=clock,
            id_generator=id_generator,
            environment=UnreadableEnvironmentStats(),
            exporter=exporter,
        )
        trace = tracer.start_trace("op")

        with caplog.at_level(logging.ERROR):
            finished = tracer.finish_trace(trace.trace_id)

        assert finished.status == TraceStatus.COMPLETED
        assert tracer.get_trace(trace.trace_id) is trace
        assert exporter.exported == [(trace, None)]
        assert "Failed to compute metrics" in caplog.text

    def test_finish_trace_after_direct_finish(self, tracer, exporter, clock):
        """Test that a trace finished on the Trace object is still retained and exported."""
        trace = tracer.start_trace("op")
        clock.advance(20)
        trace.finish()
        clock.advance(20)

        finished = tracer.finish_trace(trace.trace_id, RuntimeError("late"))

        assert finished is trace
        assert finished.status == TraceStatus.COMPLETED
        assert finished.duration_ms == 20
        assert finished.error is None
        assert tracer.active_traces == []
        assert tracer.get_trace(trace.trace_id) is trace
        assert exporter.traces == [trace]


class TestTracerConfiguration:
    """Test cases for configuration-driven behavior."""

    def test_capture_metrics_disabled(self, make_tracer, exporter, environment):
        """Test that metrics are skipped when capture is off."""
        tracer = make_tracer(capture_metrics=False)
        trace = tracer.start_trace("op")

        tracer.finish_trace(trace.trace_id)

        assert exporter.exported == [(trace, None)]
        assert environment.samples == 0

    def test_unsampled_trace_not_retained(self, make_tracer, exporter, fixed_random):
        """Test that unsampled traces work but are neither stored nor exported."""
        tracer = make_tracer(sample_rate=0.5, rng=fixed_random(0.7))
        trace = tracer.start_trace("op")
        tracer.start_span(trace.trace_id, "step")
        tracer.end_span(trace.trace_id)

        finished = tracer.finish_trace(trace.trace_id)

        assert finished.sampled is False
        assert finished.status == TraceStatus.COMPLETED
        assert tracer.get_trace(trace.trace_id) is None
        assert exporter.exported == []
        assert tracer.active_traces == []

    def test_sampled_trace_retained(self, make_tracer, exporter, fixed_random):
        tracer = make_tracer(sample_rate=0.5, rng=fixed_random(0.3))
        trace = tracer.start_trace("op")

        tracer.finish_trace(trace.trace_id)

        assert trace.sampled is True
        assert tracer.get_trace(trace.trace_id) is trace

    def test_zero_sample_rate(self, make_tracer, fixed_random):
        tracer = make_tracer(sample_rate=0.0, rng=fixed_random(0.0))

        assert tracer.start_trace("op").sampled is False

    def test_store_capacity_from_config(self, make_tracer):
        tracer = make_tracer(max_traces=2)
        for name in ("a", "b", "c"):
            tracer.finish_trace(tracer.start_trace(name).trace_id)

        assert [t.name for t in tracer.store.get_all()] == ["b", "c"]

    def test_injected_store(self, make_tracer):
        store = TraceStore(max_traces=5)
        tracer = make_tracer(store=store)

        tracer.finish_trace(tracer.start_trace("op").trace_id)

        assert len(store) == 1

    def test_default_exporters(self):
        assert isinstance(Tracer(TracerConfig(service_name="svc")).exporter, ConsoleExporter)
        assert isinstance(Tracer(TracerConfig(service_name="svc", export_to="none")).exporter, NullExporter)

    def test_slow_traces_and_stats(self, tracer, clock):
        """Test that queries are delegated to the store."""
        for name, duration in (("fast", 100), ("slow", 1500)):
            trace = tracer.start_trace(name)
            clock.advance(duration)
            tracer.finish_trace(trace.trace_id)

        assert [t.name for t in tracer.get_slow_traces()] == ["slow"]
        assert [t.name for t in tracer.get_slow_traces(50)] == ["fast", "slow"]
        stats = tracer.get_stats()
        assert stats.total_traces == 2
        assert stats.average_duration_ms == 800
        assert stats.slowest_trace_ms == 1500
        assert stats.fastest_trace_ms == 100

    def test_create_tracer(self, clock):
        """Test the factory splits config options from collaborators."""
        exporter = InMemoryExporter()

        tracer = create_tracer("test-service", capture_metrics=False, clock=clock, exporter=exporter)

        assert tracer.config.service_name == "test-service"
        assert tracer.config.capture_metrics is False
        assert tracer.clock is clock
        assert tracer.exporter is exporter


class TestInstrument:
    """Test cases for the instrument decorator."""

    def test_sync_function(self, tracer, exporter, clock):
        @tracer.instrument("get_user")
        def get_user(user_id):
            clock.advance(30)
            return {"id": user_id}

        assert get_user(7) == {"id": 7}
        assert get_user.__name__ == "get_user"

        trace = exporter.traces[0]
        assert trace.name == "get_user"
        assert trace.status == TraceStatus.COMPLETED
        execution = trace.children_of(trace.root_span)[0]
        assert execution.name == "execution"
        assert execution.duration_ms == 30
        assert tracer.active_traces == []

    def test_sync_function_error_is_reraised(self, tracer, exporter):
        error = ValueError("bad id")

        @tracer.instrument()
        def get_user(user_id):
            raise error

        with pytest.raises(ValueError) as exc_info:
            get_user(-1)

        assert exc_info.value is error
        trace = exporter.traces[0]
        assert trace.name.endswith("get_user")
        assert trace.status == TraceStatus.FAILED
        assert trace.error is error
        assert trace.children_of(trace.root_span)[0].status == SpanStatus.ERROR

    def test_async_function(self, tracer, exporter, clock):
        @tracer.instrument("fetch")
        async def fetch(value):
            await asyncio.sleep(0)
            clock.advance(12)
            return value * 2

        assert asyncio.run(fetch(21)) == 42

        trace = exporter.traces[0]
        assert trace.status == TraceStatus.COMPLETED
        assert trace.children_of(trace.root_span)[0].duration_ms == 12

    def test_async_function_error_is_reraised(self, tracer, exporter):
        @tracer.instrument("fetch")
        async def fetch():
            raise TimeoutError("upstream")

        with pytest.raises(TimeoutError):
            asyncio.run(fetch())

        assert exporter.traces[0].status == TraceStatus.FAILED

    def test_metrics_failure_does_not_mask_application_error(self, clock, id_generator, exporter):
        """Test that the wrapped function's exception survives a failing memory sampler."""
        tracer = Tracer(
            TracerConfig(service_name="svc"),
            clock=clock,
            id_generator=id_generator,
            environment=UnreadableEnvironmentStats(),
            exporter=exporter,
        )
        error = ValueError("app error")

        @tracer.instrument("op")
        def fails():
            raise error

        with pytest.raises(ValueError) as exc_info:
            fails()

        assert exc_info.value is error
        assert exporter.traces[0].status == TraceStatus.FAILED

    def test_tracing_failure_does_not_mask_application_error(self, tracer, exporter, caplog):
        """Test that an error while closing the trace is logged, not raised in place of the call's own error."""
        error = ValueError("app error")

        @tracer.instrument("op")
        def fails():
            # Ends the execution span and the root, so closing the span fails
            tracer.end_span(tracer.active_traces[0].trace_id)
            tracer.end_span(tracer.active_traces[0].trace_id)
            raise error

        with caplog.at_level(logging.ERROR):
            with pytest.raises(ValueError) as exc_info:
                fails()

        assert exc_info.value is error
        assert "Failed to end span of instrumented trace" in caplog.text
        assert exporter.traces[0].status == TraceStatus.FAILED
        assert tracer.active_traces == []
