"""Display helpers for positions and percentages."""

from __future__ import annotations


def format_time(seconds: float) -> str:
    """Render a position as ``m:ss`` or ``h:mm:ss``."""

    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_progress(percentage: float) -> str:
    return f"{percentage:.1f}%"


__all__ = ["format_progress", "format_time"]
