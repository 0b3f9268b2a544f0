"""
Bounded in-memory retention of finished traces.
"""

from typing import Dict, List, Optional
import logging

from .models import Trace, TraceStats

logger = logging.getLogger(__name__)

DEFAULT_MAX_TRACES = 1000


class TraceStore:
    """
    Keeps the most recently stored traces, up to a fixed capacity.

    Eviction follows insertion order: when the store grows past capacity the
    trace that was inserted first is dropped. Storing a trace id that is
    already present replaces the trace but keeps its original position.
    """

    def __init__(self, max_traces: int = DEFAULT_MAX_TRACES):
        """
        Initialize the TraceStore.

        Args:
            max_traces: Maximum number of traces to retain
        """
        if max_traces < 1:
            raise ValueError(f"max_traces must be at least 1, got {max_traces}")
        self.max_traces = max_traces
        self._traces: Dict[str, Trace] = {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def __len__(self) -> int:
        return len(self._traces)

    def __contains__(self, trace_id: object) -> bool:
        return trace_id in self._traces

    def store(self, trace: Trace) -> None:
        """
        Insert or replace a trace, evicting the oldest entry if over capacity.

        Args:
            trace: A finished trace
        """
        self._traces[trace.trace_id] = trace

        if len(self._traces) > self.max_traces:
            oldest_id = next(iter(self._traces))
            del self._traces[oldest_id]
            self.logger.warning(f"Trace store full ({self.max_traces}), evicted trace '{oldest_id}'")

    def get(self, trace_id: str) -> Optional[Trace]:
        return self._traces.get(trace_id)

    def get_all(self) -> List[Trace]:
        """Return all retained traces in insertion order."""
        return list(self._traces.values())

    def get_slow_traces(self, threshold_ms: float = 1000.0) -> List[Trace]:
        """
        Return traces whose duration strictly exceeds a threshold.

        Args:
            threshold_ms: Threshold in milliseconds

        Returns:
            Matching traces in insertion order
        """
        return [t for t in self._traces.values() if (t.duration_ms or 0) > threshold_ms]

    def clear(self) -> None:
        self._traces.clear()

    def get_stats(self) -> TraceStats:
        """
        Compute aggregate duration statistics.

        Returns:
            TraceStats; the duration fields are None when the store is empty
        """
        durations = [t.duration_ms or 0 for t in self._traces.values()]
        if not durations:
            return TraceStats(total_traces=0)

        return TraceStats(
            total_traces=len(durations),
            average_duration_ms=sum(durations) / len(durations),
            slowest_trace_ms=max(durations),
            fastest_trace_ms=min(durations),
        )
