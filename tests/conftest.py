"""
Shared fixtures: deterministic clock, identifiers and environment statistics.
"""

import pytest

from trace_debugger import (
    Clock,
    EnvironmentStats,
    IdGenerator,
    InMemoryExporter,
    Trace,
    Tracer,
    TracerConfig,
)


class ManualClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.current = start

    def now(self) -> float:
        return self.current

    def advance(self, ms: float) -> None:
        self.current += ms


class SequentialIdGenerator(IdGenerator):
    """Produces trace-1, trace-2, ... and span-1, span-2, ..."""

    def __init__(self):
        self._traces = 0
        self._spans = 0

    def trace_id(self) -> str:
        self._traces += 1
        return f"trace-{self._traces}"

    def span_id(self) -> str:
        self._spans += 1
        return f"span-{self._spans}"


class FixedEnvironmentStats(EnvironmentStats):
    def __init__(self, memory_mb: float = 42.5):
        self.memory_mb = memory_mb
        self.samples = 0

    def memory_used_mb(self) -> float:
        self.samples += 1
        return self.memory_mb


class FixedRandom:
    """Stand-in for random.Random that always draws the same value."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def id_generator():
    return SequentialIdGenerator()


@pytest.fixture
def environment():
    return FixedEnvironmentStats()


@pytest.fixture
def exporter():
    return InMemoryExporter()


@pytest.fixture
def make_tracer(clock, id_generator, environment, exporter):
    """Factory for tracers wired to the deterministic fixtures."""
    def _make(**config_overrides):
        rng = config_overrides.pop("rng", None)
        store = config_overrides.pop("store", None)
        config = TracerConfig(service_name="test-service", **config_overrides)
        return Tracer(
            config,
            clock=clock,
            id_generator=id_generator,
            environment=environment,
            exporter=exporter,
            rng=rng,
            store=store,
        )
    return _make


@pytest.fixture
def tracer(make_tracer):
    return make_tracer()


@pytest.fixture
def make_trace(clock, id_generator):
    """Factory for traces bound to the manual clock."""
    def _make(name: str = "operation", trace_id: str = None) -> Trace:
        return Trace.create(trace_id or id_generator.trace_id(), name, clock=clock, id_generator=id_generator)
    return _make


@pytest.fixture
def finished_trace(make_trace, clock):
    """Factory for finished traces with a given duration."""
    def _make(trace_id: str, duration_ms: float, error: BaseException = None) -> Trace:
        trace = make_trace(trace_id, trace_id=trace_id)
        clock.advance(duration_ms)
        trace.finish(error)
        return trace
    return _make


@pytest.fixture
def fixed_random():
    """Factory for random sources that always draw the given value."""
    return FixedRandom
