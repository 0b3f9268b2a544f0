"""
Derived performance records computed from finished traces.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class OperationTiming(BaseModel):
    """Name and duration of a single operation."""
    name: str = Field(..., description="Span name")
    duration_ms: float = Field(..., description="Duration in milliseconds")


class QueryTiming(BaseModel):
    """A database or query span reduced to its label and duration."""
    query: str = Field(..., description="The span's 'query' attribute, or its name")
    duration_ms: float = Field(..., description="Duration in milliseconds")


class PerformanceMetrics(BaseModel):
    """Performance summary of one finished trace."""
    total_duration_ms: float = Field(..., description="Duration of the trace, 0 if it never finished")
    slowest_operation: OperationTiming = Field(..., description="The span with the longest duration")
    operation_count: int = Field(..., description="Number of spans in the trace")
    average_operation_time_ms: float = Field(..., description="Mean span duration, running spans count as 0")
    database_queries: List[QueryTiming] = Field(default_factory=list, description="Spans that look like database queries")
    memory_used_mb: float = Field(..., description="Process memory sampled when the metrics were computed")


class TraceStats(BaseModel):
    """Aggregate statistics over the traces currently retained in a store."""
    total_traces: int = Field(..., description="Number of retained traces")
    average_duration_ms: Optional[float] = Field(None, description="Mean trace duration, None when the store is empty")
    slowest_trace_ms: Optional[float] = Field(None, description="Longest trace duration, None when the store is empty")
    fastest_trace_ms: Optional[float] = Field(None, description="Shortest trace duration, None when the store is empty")
