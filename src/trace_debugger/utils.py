"""
Formatting helpers shared by trace rendering and exporters.
"""

from typing import Optional


def format_duration(duration_ms: Optional[float]) -> str:
    """
    Format a duration for display.

    Args:
        duration_ms: Duration in milliseconds, or None for an operation still running

    Returns:
        Whole milliseconds without decimals ("50ms"), otherwise two decimals ("12.50ms")
    """
    if duration_ms is None:
        return "running"
    if float(duration_ms).is_integer():
        return f"{int(duration_ms)}ms"
    return f"{duration_ms:.2f}ms"
