"""
Interface for components that publish finished traces.
"""

from abc import ABC, abstractmethod
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..models import PerformanceMetrics, Trace


class TraceExporter(ABC):
    """Abstract interface for exporters that receive finished traces."""

    @abstractmethod
    def export(self, trace: "Trace", metrics: Optional["PerformanceMetrics"] = None) -> None:
        """
        Publish a finished trace.

        Args:
            trace: The finished trace
            metrics: Metrics computed for the trace, None when metrics capture is disabled
        """
        pass
