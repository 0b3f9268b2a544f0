# Exporters module
from .interfaces import TraceExporter
from .console import ConsoleExporter, format_metrics
from .json_lines import JsonLinesExporter, trace_to_document
from .memory import InMemoryExporter, NullExporter

__all__ = [
    "TraceExporter",
    "ConsoleExporter",
    "JsonLinesExporter",
    "InMemoryExporter",
    "NullExporter",
    "format_metrics",
    "trace_to_document",
]
