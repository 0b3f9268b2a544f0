"""
Performance analysis of finished traces.
"""

from typing import Optional
import logging

from .environment import EnvironmentStats, ProcessEnvironmentStats
from .models import OperationTiming, PerformanceMetrics, QueryTiming, Trace

logger = logging.getLogger(__name__)

QUERY_NAME_MARKERS = ("database", "query")


class MetricsAnalyzer:
    """
    Computes PerformanceMetrics from a trace's spans.

    Everything except the memory sample is derived from the trace alone.
    The memory sample comes from the EnvironmentStats collaborator.
    """

    def __init__(self, environment: Optional[EnvironmentStats] = None):
        """
        Initialize the MetricsAnalyzer.

        Args:
            environment: Source of process statistics, defaults to psutil sampling
        """
        self.environment = environment or ProcessEnvironmentStats()

    def analyze(self, trace: Trace) -> PerformanceMetrics:
        """
        Analyze a trace.

        Spans without a duration, and a trace that never finished, count as 0.
        Ties for the slowest span go to the span created first.

        Args:
            trace: The trace to analyze, normally finished

        Returns:
            PerformanceMetrics for the trace
        """
        spans = trace.spans

        slowest = spans[0]
        total = 0.0
        for span in spans:
            duration = span.duration_ms or 0
            total += duration
            if duration > (slowest.duration_ms or 0):
                slowest = span

        queries = [
            QueryTiming(query=str(span.attributes.get("query") or span.name), duration_ms=span.duration_ms or 0)
            for span in spans
            if any(marker in span.name for marker in QUERY_NAME_MARKERS)
        ]

        metrics = PerformanceMetrics(
            total_duration_ms=trace.duration_ms or 0,
            slowest_operation=OperationTiming(name=slowest.name, duration_ms=slowest.duration_ms or 0),
            operation_count=len(spans),
            average_operation_time_ms=total / len(spans),
            database_queries=queries,
            memory_used_mb=self.environment.memory_used_mb(),
        )
        logger.debug(
            f"Analyzed trace {trace.trace_id}: {metrics.operation_count} operations, "
            f"slowest '{metrics.slowest_operation.name}'"
        )
        return metrics
