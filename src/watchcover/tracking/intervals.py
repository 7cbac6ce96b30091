"""Interval merging for watched coverage."""

from __future__ import annotations

from typing import Iterable

from .models import WatchedInterval


def merge_intervals(intervals: Iterable[WatchedInterval]) -> list[WatchedInterval]:
    """Collapse intervals into the minimal sorted, non-touching cover.

    Intervals whose start is at or before the current merged end are folded
    into it, so touching spans (``[0, 10]`` and ``[10, 20]``) become one.
    Duplicates and input order have no effect on the result.
    """

    ordered = sorted(intervals, key=lambda interval: (interval.start, interval.end))
    if not ordered:
        return []

    merged: list[WatchedInterval] = []
    current_start, current_end = ordered[0].start, ordered[0].end
    for interval in ordered[1:]:
        if interval.start <= current_end:
            current_end = max(current_end, interval.end)
        else:
            merged.append(WatchedInterval(start=current_start, end=current_end))
            current_start, current_end = interval.start, interval.end
    merged.append(WatchedInterval(start=current_start, end=current_end))
    return merged


def total_watched(intervals: Iterable[WatchedInterval]) -> float:
    """Return unique watched seconds across the given intervals."""

    return sum(interval.length for interval in merge_intervals(intervals))


__all__ = ["merge_intervals", "total_watched"]
