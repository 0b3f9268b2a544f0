"""
Exporters that keep traces in process or drop them.
"""

from typing import List, Optional, Tuple

from .interfaces import TraceExporter
from ..models import PerformanceMetrics, Trace


class InMemoryExporter(TraceExporter):
    """Collects every exported trace together with its metrics."""

    def __init__(self):
        self.exported: List[Tuple[Trace, Optional[PerformanceMetrics]]] = []

    def export(self, trace: Trace, metrics: Optional[PerformanceMetrics] = None) -> None:
        self.exported.append((trace, metrics))

    @property
    def traces(self) -> List[Trace]:
        return [trace for trace, _ in self.exported]

    def clear(self) -> None:
        self.exported.clear()


class NullExporter(TraceExporter):
    """Discards exported traces."""

    def export(self, trace: Trace, metrics: Optional[PerformanceMetrics] = None) -> None:
        pass
