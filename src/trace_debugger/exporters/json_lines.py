"""
Exporter that appends finished traces to a JSON Lines file.
"""

from typing import Any, Dict, Optional
import json
import logging
import os

from .interfaces import TraceExporter
from ..models import PerformanceMetrics, Trace

logger = logging.getLogger(__name__)


def trace_to_document(trace: Trace, metrics: Optional[PerformanceMetrics] = None) -> Dict[str, Any]:
    """
    Build the JSON document written for one trace.

    Args:
        trace: The finished trace
        metrics: Optional metrics for the trace

    Returns:
        Dictionary with the trace summary, its span tree and its metrics
    """
    return {
        "trace_id": trace.trace_id,
        "name": trace.name,
        "status": trace.status.value,
        "start_time": trace.start_time,
        "end_time": trace.end_time,
        "duration_ms": trace.duration_ms,
        "error": str(trace.error) if trace.error is not None else None,
        "span_count": len(trace.spans),
        "span_tree": trace.get_span_tree().model_dump(),
        "metrics": metrics.model_dump() if metrics is not None else None,
    }


class JsonLinesExporter(TraceExporter):
    """Appends one JSON document per finished trace to a file."""

    def __init__(self, path: str):
        """
        Initialize the JsonLinesExporter.

        Args:
            path: File to append to; missing parent directories are created
        """
        self.path = path
        self.logger = logging.getLogger(self.__class__.__name__)

    def export(self, trace: Trace, metrics: Optional[PerformanceMetrics] = None) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        # Attribute values are arbitrary; anything json can't encode is written as str()
        line = json.dumps(trace_to_document(trace, metrics), ensure_ascii=False, default=str)
        with open(self.path, "a", encoding="utf-8") as fh:
            fh.write(line + "\n")
        self.logger.debug(f"Exported trace {trace.trace_id} to {self.path}")
