"""
Trace model for representing a unit of work as a tree of spans.
"""

from enum import Enum
from typing import List, Optional
import logging

from pydantic import BaseModel, Field, PrivateAttr

from ..environment import Clock, IdGenerator, SystemClock, UuidIdGenerator
from ..errors import AlreadyFinishedError
from ..utils import format_duration
from .span import Span, SpanSnapshot

logger = logging.getLogger(__name__)

VISUALIZE_INDENT = "  "
VISUALIZE_BRANCH = "├─ "


class TraceStatus(str, Enum):
    """Lifecycle state of a trace."""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Trace(BaseModel):
    """
    Represents a complete unit of work as a tree of spans.

    The trace owns every span in ``spans``, in creation order, with the root
    span always first. Parent and child links are positions in that list.
    A cursor designates the innermost open span: start_span() descends into
    a new child of the cursor and end_span() closes the cursor and climbs
    back to its parent.

    Span operations are only valid while the trace is running. Once finish()
    has been called they raise AlreadyFinishedError.
    """
    trace_id: str = Field(..., description="Unique identifier for the trace")
    name: str = Field(..., description="Name of the root operation")
    start_time: float = Field(..., description="Start time in milliseconds")
    end_time: Optional[float] = Field(None, description="End time in milliseconds")
    duration_ms: Optional[float] = Field(None, description="Total duration of the trace in milliseconds")
    status: TraceStatus = Field(TraceStatus.RUNNING, description="Status of the trace")
    error: Optional[BaseException] = Field(None, exclude=True, description="Error the trace finished with")
    sampled: bool = Field(True, description="Whether the trace is retained and exported when finished")
    spans: List[Span] = Field(default_factory=list, description="All spans of the trace in creation order")

    _cursor: int = PrivateAttr(default=0)
    _clock: Clock = PrivateAttr(default_factory=SystemClock)
    _id_generator: IdGenerator = PrivateAttr(default_factory=UuidIdGenerator)

    class Config:
        """Pydantic configuration."""
        arbitrary_types_allowed = True

    @classmethod
    def create(
        cls,
        trace_id: str,
        root_name: str,
        *,
        clock: Optional[Clock] = None,
        id_generator: Optional[IdGenerator] = None,
        sampled: bool = True,
    ) -> "Trace":
        """
        Start a new trace with its root span.

        Args:
            trace_id: Identifier for the trace
            root_name: Name of the root operation
            clock: Timestamp source, defaults to the system clock
            id_generator: Span identifier source, defaults to random UUIDs
            sampled: Whether the trace should be retained once finished

        Returns:
            Running trace whose cursor points at the root span
        """
        clock = clock or SystemClock()
        id_generator = id_generator or UuidIdGenerator()
        start_time = clock.now()
        root = Span.create(trace_id, root_name, span_id=id_generator.span_id(), start_time=start_time)
        trace = cls(trace_id=trace_id, name=root_name, start_time=start_time, sampled=sampled, spans=[root])
        trace._clock = clock
        trace._id_generator = id_generator
        logger.debug(f"Started trace '{root_name}' ({trace_id})")
        return trace

    @property
    def root_span(self) -> Span:
        return self.spans[0]

    @property
    def all_spans(self) -> List[Span]:
        """All spans in creation order. The list is a copy, the spans are not."""
        return list(self.spans)

    @property
    def current_span(self) -> Span:
        return self.spans[self._cursor]

    @property
    def is_finished(self) -> bool:
        return self.status != TraceStatus.RUNNING

    def children_of(self, span: Span) -> List[Span]:
        return [self.spans[i] for i in span.child_indices]

    def parent_of(self, span: Span) -> Optional[Span]:
        if span.parent_index is None:
            return None
        return self.spans[span.parent_index]

    def _ensure_running(self, operation: str) -> None:
        if self.is_finished:
            raise AlreadyFinishedError(
                f"Cannot {operation}: trace '{self.name}' ({self.trace_id}) is already {self.status.value}",
                trace_id=self.trace_id,
            )

    def start_span(self, name: str) -> Span:
        """
        Open a new span nested under the current one and make it current.

        Args:
            name: Operation name

        Returns:
            The newly started span

        Raises:
            AlreadyFinishedError: If the trace has been finished
        """
        self._ensure_running("start a span")
        parent = self.current_span
        span = Span.create(
            self.trace_id,
            name,
            parent_id=parent.span_id,
            span_id=self._id_generator.span_id(),
            start_time=self._clock.now(),
            index=len(self.spans),
            parent_index=parent.index,
        )
        parent.add_child(span)
        self.spans.append(span)
        self._cursor = span.index
        logger.debug(f"Started span '{name}' under '{parent.name}' in trace {self.trace_id}")
        return span

    def end_span(self, error: Optional[BaseException] = None) -> Span:
        """
        End the current span and move the cursor back to its parent.

        When no span is open above the root, the root itself is ended and the
        cursor stays on it. Callers that may end more spans than they started
        must catch AlreadyFinishedError; the trace is left unchanged when it
        is raised.

        Args:
            error: Error raised by the operation, if it failed

        Returns:
            The span that was ended

        Raises:
            AlreadyFinishedError: If the trace has been finished, or if the
                root span has already been ended
        """
        self._ensure_running("end a span")
        span = self.current_span
        span.end(self._clock.now(), error)
        if span.parent_index is not None:
            self._cursor = span.parent_index
        logger.debug(f"Ended span '{span.name}' in trace {self.trace_id} after {format_duration(span.duration_ms)}")
        return span

    def finish(self, error: Optional[BaseException] = None) -> None:
        """
        Close the trace. The root span is left as it is.

        Args:
            error: Error the unit of work failed with, if any

        Raises:
            AlreadyFinishedError: If the trace was already finished
        """
        self._ensure_running("finish")
        self.end_time = self._clock.now()
        self.duration_ms = self.end_time - self.start_time
        self.error = error
        self.status = TraceStatus.FAILED if error is not None else TraceStatus.COMPLETED

    def get_slow_operations(self, threshold_ms: float = 100.0) -> List[Span]:
        """
        Find spans that took longer than a threshold.

        Args:
            threshold_ms: Duration a span must strictly exceed

        Returns:
            Matching spans in creation order; spans still running are excluded
        """
        return [s for s in self.spans if s.duration_ms is not None and s.duration_ms > threshold_ms]

    def get_span_tree(self) -> SpanSnapshot:
        """Serialize the span tree starting at the root."""
        return self._serialize(self.root_span)

    def _serialize(self, span: Span) -> SpanSnapshot:
        return span.serialize([self._serialize(child) for child in self.children_of(span)])

    def visualize(self) -> str:
        """
        Render the span tree as indented text, one line per span.

        Example:
            ├─ checkout (400ms)
              ├─ validate (50ms)
              ├─ charge (200ms)
                ├─ gateway-call (150ms)
        """
        lines = []
        stack = [(self.root_span, 0)]
        while stack:
            span, level = stack.pop()
            lines.append(f"{VISUALIZE_INDENT * level}{VISUALIZE_BRANCH}{span.name} ({format_duration(span.duration_ms)})\n")
            for child in reversed(self.children_of(span)):
                stack.append((child, level + 1))
        return "".join(lines)
