"""Utility functions for dbscope."""

from __future__ import annotations

from datetime import datetime

# 12-hour wall clock used for query timestamps ("hh:MM:ss").
QUERY_TIME_FORMAT = "%I:%M:%S"


def format_query_time(moment: datetime | None = None) -> str:
    """Format a moment for display next to a query."""
    return (moment or datetime.now()).strftime(QUERY_TIME_FORMAT)


def format_duration_ms(ms: float, *, always_seconds: bool = False) -> str:
    """Format milliseconds into a human-readable duration string.

    Args:
        ms: Duration in milliseconds
        always_seconds: If True, always format as seconds (e.g., "0.00s")

    Returns:
        Formatted duration string
    """
    if always_seconds:
        return f"{ms / 1000:.2f}s"
    if ms >= 1000:
        return f"{ms / 1000:.2f}s"
    elif ms >= 1:
        return f"{ms:.0f}ms"
    else:
        return f"{ms:.2f}ms"
