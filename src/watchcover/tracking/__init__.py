"""Watched-interval tracking engine."""

from .intervals import merge_intervals, total_watched
from .lifecycle import PLAYBACK_EVENT_KINDS, PlaybackEvent, PlaybackSessionAdapter
from .models import Idle, ProgressExport, ProgressState, Tracking, WatchedInterval
from .tracker import ProgressTracker, storage_key

__all__ = [
    "Idle",
    "PLAYBACK_EVENT_KINDS",
    "PlaybackEvent",
    "PlaybackSessionAdapter",
    "ProgressExport",
    "ProgressState",
    "ProgressTracker",
    "Tracking",
    "WatchedInterval",
    "merge_intervals",
    "storage_key",
    "total_watched",
]
