"""
Span model for representing individual timed operations inside a trace.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..errors import AlreadyFinishedError


class SpanStatus(str, Enum):
    """Lifecycle state of a span."""
    STARTED = "started"
    COMPLETED = "completed"
    ERROR = "error"


class SpanSnapshot(BaseModel):
    """Read-only, tree-shaped view of a span and its descendants."""
    id: str = Field(..., description="Identifier of the span")
    name: str = Field(..., description="Name of the span")
    duration_ms: Optional[float] = Field(None, description="Duration in milliseconds, None while running")
    status: SpanStatus = Field(..., description="Status of the span")
    error: Optional[str] = Field(None, description="Message of the captured error, if any")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Span attributes")
    children: List["SpanSnapshot"] = Field(default_factory=list, description="Serialized child spans")

    class Config:
        """Pydantic configuration."""
        frozen = True


class Span(BaseModel):
    """
    A single timed operation within a trace.

    Spans are stored in their trace's span list and reference their parent
    and children by position in that list. Apart from attribute additions and
    child appends, the only mutation a span allows is the one-shot end().
    """
    span_id: str = Field(..., description="Unique identifier for the span")
    trace_id: str = Field(..., description="Identifier for the trace this span belongs to")
    parent_id: Optional[str] = Field(None, description="Identifier of the parent span")
    index: int = Field(0, description="Position of the span in its trace's span list")
    parent_index: Optional[int] = Field(None, description="Position of the parent span in the span list")
    child_indices: List[int] = Field(default_factory=list, description="Positions of the child spans, in start order")
    name: str = Field(..., description="Name of the span")
    start_time: float = Field(..., description="Start time in milliseconds")
    end_time: Optional[float] = Field(None, description="End time in milliseconds")
    duration_ms: Optional[float] = Field(None, description="Duration of the span in milliseconds")
    status: SpanStatus = Field(SpanStatus.STARTED, description="Status of the span")
    error: Optional[BaseException] = Field(None, exclude=True, description="Error captured when the span failed")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Span attributes")

    class Config:
        """Pydantic configuration."""
        arbitrary_types_allowed = True

    @classmethod
    def create(
        cls,
        trace_id: str,
        name: str,
        parent_id: Optional[str] = None,
        *,
        span_id: str,
        start_time: float,
        index: int = 0,
        parent_index: Optional[int] = None,
    ) -> "Span":
        """
        Build a freshly started span.

        Args:
            trace_id: Trace the span belongs to
            name: Operation name
            parent_id: Identifier of the parent span, None for a root span
            span_id: Identifier for the new span
            start_time: Start timestamp in milliseconds
            index: Position the span will occupy in the trace's span list
            parent_index: Position of the parent span in that list

        Returns:
            Span with status ``started`` and no attributes or children
        """
        return cls(
            span_id=span_id,
            trace_id=trace_id,
            parent_id=parent_id,
            index=index,
            parent_index=parent_index,
            name=name,
            start_time=start_time,
        )

    @property
    def is_root(self) -> bool:
        return self.parent_index is None

    @property
    def is_finished(self) -> bool:
        return self.status != SpanStatus.STARTED

    def add_child(self, child: "Span") -> None:
        """Append a child span. The child's parent linkage is set by the caller."""
        self.child_indices.append(child.index)

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def end(self, end_time: float, error: Optional[BaseException] = None) -> None:
        """
        Close the span, recording its duration and outcome.

        Args:
            end_time: End timestamp in milliseconds
            error: Error raised by the operation, if it failed

        Raises:
            AlreadyFinishedError: If the span was already ended
        """
        if self.is_finished:
            raise AlreadyFinishedError(
                f"Span '{self.name}' ({self.span_id}) has already ended",
                trace_id=self.trace_id,
                span_name=self.name,
            )
        self.end_time = end_time
        self.duration_ms = end_time - self.start_time
        self.error = error
        self.status = SpanStatus.ERROR if error is not None else SpanStatus.COMPLETED

    def serialize(self, children: Sequence[SpanSnapshot] = ()) -> SpanSnapshot:
        """
        Produce a snapshot of this span.

        Args:
            children: Already serialized child spans, in start order

        Returns:
            SpanSnapshot carrying a copy of the attributes
        """
        return SpanSnapshot(
            id=self.span_id,
            name=self.name,
            duration_ms=self.duration_ms,
            status=self.status,
            error=str(self.error) if self.error is not None else None,
            attributes=dict(self.attributes),
            children=list(children),
        )


SpanSnapshot.model_rebuild()
