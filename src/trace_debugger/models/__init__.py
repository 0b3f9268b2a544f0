"""
Core data models for traces, spans and the metrics derived from them.
"""

from .span import Span, SpanSnapshot, SpanStatus
from .trace import Trace, TraceStatus
from .metrics import OperationTiming, QueryTiming, PerformanceMetrics, TraceStats

__all__ = [
    "Span",
    "SpanSnapshot",
    "SpanStatus",
    "Trace",
    "TraceStatus",
    # Derived records
    "OperationTiming",
    "QueryTiming",
    "PerformanceMetrics",
    "TraceStats",
]
