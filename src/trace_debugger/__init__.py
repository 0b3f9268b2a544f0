"""
Trace Debugger - in-process request tracing for Python applications.

This package provides tools and utilities for:
- Recording a unit of work as a tree of timed spans
- Retaining a bounded history of finished traces
- Computing performance metrics (slowest operation, averages, database queries)
- Exporting finished traces to the console, JSON Lines files or custom exporters
"""

__version__ = "0.1.0"
__author__ = "Your Name"
__email__ = "your.email@example.com"

from .models import (
    Span,
    SpanSnapshot,
    SpanStatus,
    Trace,
    TraceStatus,
    OperationTiming,
    QueryTiming,
    PerformanceMetrics,
    TraceStats,
)
from .errors import TracerError, NoActiveTraceError, TraceNotFoundError, AlreadyFinishedError
from .environment import (
    Clock,
    IdGenerator,
    EnvironmentStats,
    SystemClock,
    UuidIdGenerator,
    ProcessEnvironmentStats,
)
from .config import TracerConfig
from .store import TraceStore
from .metrics import MetricsAnalyzer
from .exporters import TraceExporter, ConsoleExporter, JsonLinesExporter, InMemoryExporter, NullExporter
from .tracer import Tracer, create_tracer

__all__ = [
    "Tracer",
    "create_tracer",
    "TracerConfig",
    "TraceStore",
    "MetricsAnalyzer",
    # Models
    "Span",
    "SpanSnapshot",
    "SpanStatus",
    "Trace",
    "TraceStatus",
    "OperationTiming",
    "QueryTiming",
    "PerformanceMetrics",
    "TraceStats",
    # Errors
    "TracerError",
    "NoActiveTraceError",
    "TraceNotFoundError",
    "AlreadyFinishedError",
    # Environment
    "Clock",
    "IdGenerator",
    "EnvironmentStats",
    "SystemClock",
    "UuidIdGenerator",
    "ProcessEnvironmentStats",
    # Exporters
    "TraceExporter",
    "ConsoleExporter",
    "JsonLinesExporter",
    "InMemoryExporter",
    "NullExporter",
]
