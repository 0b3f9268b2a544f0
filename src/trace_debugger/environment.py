"""
Collaborators that connect the tracer to its host environment.

Time, identity and process statistics are read through these interfaces so
that traces can be produced deterministically in tests.
"""

from abc import ABC, abstractmethod
import logging
import time
import uuid

import psutil

logger = logging.getLogger(__name__)


class Clock(ABC):
    """Source of timestamps in milliseconds."""

    @abstractmethod
    def now(self) -> float:
        """
        Return the current time.

        Returns:
            Milliseconds since an arbitrary but fixed epoch
        """
        pass


class IdGenerator(ABC):
    """Source of unique trace and span identifiers."""

    @abstractmethod
    def trace_id(self) -> str:
        """Return a new unique trace identifier."""
        pass

    @abstractmethod
    def span_id(self) -> str:
        """Return a new unique span identifier."""
        pass


class EnvironmentStats(ABC):
    """Point-in-time measurements of the host process."""

    @abstractmethod
    def memory_used_mb(self) -> float:
        """
        Sample the memory used by the current process.

        Returns:
            Memory in megabytes
        """
        pass


class SystemClock(Clock):
    """Wall clock backed by time.time()."""

    def now(self) -> float:
        return time.time() * 1000.0


class UuidIdGenerator(IdGenerator):
    """Random identifiers of the form ``trace-<hex>`` and ``span-<hex>``."""

    def trace_id(self) -> str:
        return f"trace-{uuid.uuid4().hex}"

    def span_id(self) -> str:
        return f"span-{uuid.uuid4().hex[:16]}"


class ProcessEnvironmentStats(EnvironmentStats):
    """Reads resident memory of the running process through psutil."""

    def __init__(self):
        self._process = psutil.Process()

    def memory_used_mb(self) -> float:
        rss = self._process.memory_info().rss
        logger.debug(f"Sampled process memory: {rss} bytes")
        return rss / 1024 / 1024
