"""
Tracer configuration.
"""

from typing import Any, Dict, Literal
import os

from pydantic import BaseModel, Field

from .store import DEFAULT_MAX_TRACES

ENV_PREFIX = "TRACE_DEBUGGER_"

_ENV_FIELDS = {
    "service_name": "SERVICE_NAME",
    "export_to": "EXPORT_TO",
    "capture_metrics": "CAPTURE_METRICS",
    "sample_rate": "SAMPLE_RATE",
    "max_traces": "MAX_TRACES",
}


class TracerConfig(BaseModel):
    """Configuration for a Tracer."""
    service_name: str = Field(..., min_length=1, description="Name of the service that owns the traces")
    export_to: Literal["console", "none"] = Field("console", description="Built-in exporter used when none is supplied")
    capture_metrics: bool = Field(True, description="Compute performance metrics when a trace finishes")
    sample_rate: float = Field(1.0, ge=0.0, le=1.0, description="Fraction of traces retained and exported")
    max_traces: int = Field(DEFAULT_MAX_TRACES, ge=1, description="Capacity of the trace store")

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, **overrides: Any) -> "TracerConfig":
        """
        Build a configuration from environment variables.

        Args:
            prefix: Prefix of the variable names, e.g. TRACE_DEBUGGER_SERVICE_NAME
            **overrides: Field values that take precedence over the environment

        Returns:
            Validated TracerConfig
        """
        values: Dict[str, Any] = {}
        for field_name, suffix in _ENV_FIELDS.items():
            value = os.getenv(prefix + suffix)
            if value is not None:
                values[field_name] = value
        values.update(overrides)
        return cls.model_validate(values)
