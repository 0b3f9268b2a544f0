"""
Exporter that prints traces and their metrics in human-readable form.
"""

from typing import Optional, TextIO
import sys

from .interfaces import TraceExporter
from ..models import PerformanceMetrics, Trace
from ..utils import format_duration


def format_metrics(metrics: PerformanceMetrics) -> str:
    """
    Render a metrics block.

    Args:
        metrics: Metrics to render

    Returns:
        Multi-line text, database queries listed last when there are any
    """
    lines = [
        "Performance Metrics:",
        f"Total Duration: {format_duration(metrics.total_duration_ms)}",
        f"Operations: {metrics.operation_count}",
        f"Average per Op: {metrics.average_operation_time_ms:.2f}ms",
        f"Slowest: {metrics.slowest_operation.name} ({format_duration(metrics.slowest_operation.duration_ms)})",
        f"Memory: {metrics.memory_used_mb:.2f}MB",
    ]
    if metrics.database_queries:
        lines.append("")
        lines.append("Database Queries:")
        lines.extend(f"  - {q.query} ({format_duration(q.duration_ms)})" for q in metrics.database_queries)
    return "\n".join(lines) + "\n"


class ConsoleExporter(TraceExporter):
    """Writes the span tree and metrics of each finished trace to a text stream."""

    def __init__(self, stream: Optional[TextIO] = None):
        """
        Initialize the ConsoleExporter.

        Args:
            stream: Destination stream, defaults to sys.stdout at export time
        """
        self.stream = stream

    def export(self, trace: Trace, metrics: Optional[PerformanceMetrics] = None) -> None:
        stream = self.stream or sys.stdout
        stream.write(f"\nTrace: {trace.name} [{trace.status.value}] {format_duration(trace.duration_ms)}\n")
        stream.write(trace.visualize())
        if metrics is not None:
            stream.write("\n")
            stream.write(format_metrics(metrics))
        stream.flush()
