"""
Exceptions raised when the tracing API is misused.

Errors that happen inside the traced application are never raised from here:
they are captured on the span or trace they belong to.
"""

from typing import Optional


class TracerError(Exception):
    """Base exception for tracing errors.

    Attributes:
        trace_id: Identifier of the trace involved, if known.
        span_name: Name of the span involved, if known.
    """

    def __init__(self, message: str, *, trace_id: Optional[str] = None, span_name: Optional[str] = None):
        super().__init__(message)
        self.trace_id = trace_id
        self.span_name = span_name


class NoActiveTraceError(TracerError):
    """A span operation referenced a trace that is not currently open."""


class TraceNotFoundError(TracerError):
    """A trace id could not be resolved to an open trace."""


class AlreadyFinishedError(TracerError):
    """A span or trace was ended after it already reached a terminal state."""
