"""
Tracer: opens traces, routes span operations to them and publishes them when they finish.
"""

from typing import Any, Callable, Dict, List, Optional, TypeVar
import functools
import inspect
import logging
import random

from .config import TracerConfig
from .environment import Clock, EnvironmentStats, IdGenerator, SystemClock, UuidIdGenerator
from .errors import NoActiveTraceError, TraceNotFoundError
from .exporters import ConsoleExporter, NullExporter, TraceExporter
from .metrics import MetricsAnalyzer
from .models import PerformanceMetrics, Span, Trace, TraceStats
from .store import TraceStore
from .utils import format_duration

F = TypeVar("F", bound=Callable[..., Any])

INSTRUMENTED_SPAN_NAME = "execution"


class Tracer:
    """
    Entry point for tracing units of work.

    Several traces may be open at once. Each is addressed by the trace id
    returned from start_trace(); span operations go through that id, or
    directly through the Trace object. Finished traces are kept in a
    TraceStore (if sampled), analyzed and handed to the exporter.

    A Tracer is not thread-safe. Each open trace must be driven by a single
    logical task.
    """

    def __init__(
        self,
        config: TracerConfig,
        *,
        clock: Optional[Clock] = None,
        id_generator: Optional[IdGenerator] = None,
        environment: Optional[EnvironmentStats] = None,
        exporter: Optional[TraceExporter] = None,
        rng: Optional[random.Random] = None,
        store: Optional[TraceStore] = None,
    ):
        """
        Initialize the Tracer.

        Args:
            config: Tracer configuration
            clock: Timestamp source, defaults to the system clock
            id_generator: Identifier source, defaults to random UUIDs
            environment: Process statistics source used for metrics
            exporter: Destination for finished traces, overrides config.export_to
            rng: Random source for sampling decisions
            store: Retention store, defaults to a TraceStore of config.max_traces
        """
        self.config = config
        self.clock = clock or SystemClock()
        self.id_generator = id_generator or UuidIdGenerator()
        self.rng = rng or random.Random()
        self.store = store if store is not None else TraceStore(config.max_traces)
        self.analyzer = MetricsAnalyzer(environment)
        self.exporter = exporter or self._default_exporter()
        self._active: Dict[str, Trace] = {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def _default_exporter(self) -> TraceExporter:
        if self.config.export_to == "console":
            return ConsoleExporter()
        return NullExporter()

    @property
    def active_traces(self) -> List[Trace]:
        """Traces started but not yet finished, in start order."""
        return list(self._active.values())

    def _should_sample(self) -> bool:
        rate = self.config.sample_rate
        if rate >= 1.0:
            return True
        if rate <= 0.0:
            return False
        return self.rng.random() < rate

    def _get_active(self, trace_id: str, operation: str) -> Trace:
        trace = self._active.get(trace_id)
        if trace is None:
            raise NoActiveTraceError(f"Cannot {operation}: no active trace '{trace_id}'", trace_id=trace_id)
        return trace

    def start_trace(self, name: str) -> Trace:
        """
        Open a new trace.

        Args:
            name: Name of the root operation, e.g. "GET /users/123"

        Returns:
            The running trace; its trace_id is the handle for later calls
        """
        sampled = self._should_sample()
        trace = Trace.create(
            self.id_generator.trace_id(),
            name,
            clock=self.clock,
            id_generator=self.id_generator,
            sampled=sampled,
        )
        self._active[trace.trace_id] = trace
        if not sampled:
            self.logger.debug(f"Trace '{name}' ({trace.trace_id}) not sampled; it will not be retained")
        return trace

    def start_span(self, trace_id: str, name: str) -> Span:
        """
        Open a span in an active trace, nested under its current span.

        Raises:
            NoActiveTraceError: If trace_id does not name an open trace
        """
        trace = self._get_active(trace_id, f"start span '{name}'")
        return trace.start_span(name)

    def end_span(self, trace_id: str, error: Optional[BaseException] = None) -> Span:
        """
        End the current span of an active trace.

        Raises:
            NoActiveTraceError: If trace_id does not name an open trace
            AlreadyFinishedError: If only the root is open and it has already ended
        """
        trace = self._get_active(trace_id, "end span")
        return trace.end_span(error)

    def finish_trace(self, trace_id: str, error: Optional[BaseException] = None) -> Trace:
        """
        Finish an active trace, then retain, analyze and export it.

        Args:
            trace_id: Identifier returned by start_trace()
            error: Error the unit of work failed with, if any

        Returns:
            The finished trace

        A trace that was already finished directly through Trace.finish()
        keeps its recorded outcome; error is then ignored.

        Raises:
            TraceNotFoundError: If trace_id does not name an open trace
        """
        trace = self._active.get(trace_id)
        if trace is None:
            raise TraceNotFoundError(f"Trace not found: {trace_id}", trace_id=trace_id)

        if trace.is_finished:
            self.logger.warning(f"Trace '{trace.name}' ({trace_id}) was already finished, keeping its outcome")
        else:
            trace.finish(error)
        del self._active[trace_id]
        self.logger.info(
            f"Finished trace '{trace.name}' ({trace_id}) as {trace.status.value} "
            f"in {format_duration(trace.duration_ms)} with {len(trace.spans)} spans"
        )

        if not trace.sampled:
            return trace

        self.store.store(trace)
        metrics = self._analyze(trace) if self.config.capture_metrics else None
        self._export(trace, metrics)
        return trace

    def _analyze(self, trace: Trace) -> Optional[PerformanceMetrics]:
        try:
            return self.analyzer.analyze(trace)
        except Exception as e:
            self.logger.error(f"Failed to compute metrics for trace '{trace.trace_id}': {e}")
            return None

    def _export(self, trace: Trace, metrics: Optional[PerformanceMetrics]) -> None:
        try:
            self.exporter.export(trace, metrics)
        except Exception as e:
            self.logger.error(f"Failed to export trace '{trace.trace_id}': {e}")

    def get_trace(self, trace_id: str) -> Optional[Trace]:
        """Look up a retained (finished) trace, None if unknown or evicted."""
        return self.store.get(trace_id)

    def get_slow_traces(self, threshold_ms: float = 1000.0) -> List[Trace]:
        return self.store.get_slow_traces(threshold_ms)

    def get_stats(self) -> TraceStats:
        return self.store.get_stats()

    def instrument(self, name: Optional[str] = None) -> Callable[[F], F]:
        """
        Decorator that traces every call of a function.

        Each call runs in its own trace, inside a single "execution" span.
        Exceptions are recorded on the span and the trace and then re-raised
        unchanged. Coroutine functions are supported.

        Usage:
            @tracer.instrument("get_user_profile")
            async def get_user_profile(user_id):
                ...

        Args:
            name: Trace name, defaults to the function's qualified name
        """
        def decorator(func: F) -> F:
            trace_name = name or func.__qualname__

            if inspect.iscoroutinefunction(func):
                @functools.wraps(func)
                async def async_wrapper(*args, **kwargs):
                    trace = self._open_instrumented(trace_name)
                    try:
                        result = await func(*args, **kwargs)
                    except BaseException as e:
                        self._close_instrumented(trace, e)
                        raise
                    self._close_instrumented(trace)
                    return result

                return async_wrapper  # type: ignore[return-value]

            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                trace = self._open_instrumented(trace_name)
                try:
                    result = func(*args, **kwargs)
                except BaseException as e:
                    self._close_instrumented(trace, e)
                    raise
                self._close_instrumented(trace)
                return result

            return wrapper  # type: ignore[return-value]

        return decorator

    def _open_instrumented(self, name: str) -> Trace:
        trace = self.start_trace(name)
        trace.start_span(INSTRUMENTED_SPAN_NAME)
        return trace

    def _close_instrumented(self, trace: Trace, error: Optional[BaseException] = None) -> None:
        # Never raises: the wrapped call's own outcome must reach the caller unchanged
        try:
            trace.end_span(error)
        except Exception as e:
            self.logger.error(f"Failed to end span of instrumented trace '{trace.trace_id}': {e}")
        try:
            self.finish_trace(trace.trace_id, error)
        except Exception as e:
            self.logger.error(f"Failed to finish instrumented trace '{trace.trace_id}': {e}")


def create_tracer(service_name: str, **options: Any) -> Tracer:
    """
    Build a Tracer from keyword options.

    Configuration fields (export_to, capture_metrics, sample_rate, max_traces)
    go to TracerConfig; collaborators (clock, id_generator, environment,
    exporter, rng, store) go to the Tracer.

    Usage:
        tracer = create_tracer("user-service", capture_metrics=False)
    """
    collaborator_names = ("clock", "id_generator", "environment", "exporter", "rng", "store")
    collaborators = {key: options.pop(key) for key in collaborator_names if key in options}
    config = TracerConfig(service_name=service_name, **options)
    return Tracer(config, **collaborators)
