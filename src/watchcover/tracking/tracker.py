"""Progress tracking for a single video.

``ProgressTracker`` records which spans of the timeline were actually played,
keeps them merged, and derives the watched percentage from that coverage. It
is the only writer of a video's progress record; every committed change is
mirrored to the key-value store and reported to the optional ``on_update``
callback.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Callable, Literal

from pydantic import ValidationError

from ..storage import KeyValueStore, StorageError
from .intervals import merge_intervals
from .models import (
    IDLE,
    PersistedProgress,
    ProgressExport,
    ProgressState,
    Tracking,
    TrackingSession,
    WatchedInterval,
)

logger = logging.getLogger(__name__)

STORAGE_KEY_PREFIX = "videoProgress-"
MIN_SEGMENT_SECONDS = 1.0

ProgressCallback = Callable[[ProgressState], None]
LoadStatus = Literal["absent", "loaded", "corrupt", "unavailable"]


def storage_key(video_id: str, prefix: str = STORAGE_KEY_PREFIX) -> str:
    """Return the storage key holding a video's progress record."""

    return f"{prefix}{video_id}"


def parse_persisted(raw: str | bytes) -> PersistedProgress | None:
    """Parse a stored record, returning ``None`` when it is unreadable."""

    try:
        return PersistedProgress.model_validate_json(raw)
    except ValidationError:
        return None


def parse_export(raw: str | bytes) -> ProgressExport | None:
    """Parse exported progress text, returning ``None`` when it is unreadable."""

    try:
        return ProgressExport.model_validate_json(raw)
    except ValidationError:
        return None


def _usable_duration(duration: float) -> bool:
    return math.isfinite(duration) and duration > 0


class ProgressTracker:
    """Track unique watched coverage and progress for one video."""

    def __init__(
        self,
        video_id: str,
        duration: float = 0.0,
        on_update: ProgressCallback | None = None,
        *,
        store: KeyValueStore,
        min_segment: float = MIN_SEGMENT_SECONDS,
        key_prefix: str = STORAGE_KEY_PREFIX,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        normalized = video_id.strip()
        if not normalized:
            raise ValueError("video_id must not be empty")
        if min_segment <= 0:
            raise ValueError("min_segment must be > 0")

        self._video_id = normalized
        self._store = store
        self._storage_key = storage_key(normalized, key_prefix)
        self._min_segment = float(min_segment)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.on_update = on_update

        self._duration = float(duration or 0.0)
        self._intervals: list[WatchedInterval] = []
        self._last_position = 0.0
        self._total_progress = 0.0
        self._session: TrackingSession = IDLE
        self._updated_at = self._clock()

        self.load_status: LoadStatus = self._load()

    # Read-only views

    @property
    def video_id(self) -> str:
        return self._video_id

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def last_position(self) -> float:
        return self._last_position

    @property
    def progress_percentage(self) -> float:
        return self._total_progress

    @property
    def merged_intervals(self) -> list[WatchedInterval]:
        return list(self._intervals)

    @property
    def session(self) -> TrackingSession:
        return self._session

    @property
    def is_tracking(self) -> bool:
        return isinstance(self._session, Tracking)

    def get_progress_data(self) -> ProgressState:
        """Return a snapshot of the current progress."""

        return ProgressState(
            video_id=self._video_id,
            intervals=tuple(self._intervals),
            last_position=self._last_position,
            total_progress=self._total_progress,
            duration=self._duration,
            updated_at=self._updated_at,
        )

    # Playback-driven mutations

    def set_duration(self, duration: float) -> None:
        """Update the media duration and recompute progress.

        Zero, negative or non-finite durations are stored but leave the
        current percentage untouched until a usable duration arrives.
        """

        self._duration = float(duration or 0.0)
        previous = self._total_progress
        self._recalculate()
        if self._total_progress != previous:
            self._touch()
            self._notify()

    def start_tracking(self, position: float) -> None:
        """Open a watch segment at ``position`` unless one is already open."""

        if isinstance(self._session, Tracking):
            logger.debug(
                "Tracking already active; ignoring start",
                extra={"video_id": self._video_id, "anchor": self._session.anchor},
            )
            return

        position = self._clamp(position)
        self._session = Tracking(anchor=position)
        self._last_position = position

    def stop_tracking(self, position: float) -> WatchedInterval | None:
        """Close the open segment at ``position`` and commit it if long enough."""

        if not isinstance(self._session, Tracking):
            return None

        committed = self._close_session(position)
        if committed is not None:
            self._last_position = self._clamp(position)
            self._touch()
            self._save()
            self._notify()
        return committed

    def handle_seek(self, position: float) -> None:
        """Account for a jump to ``position``.

        An open segment is credited only up to the last known position before
        the jump and then re-anchored at the destination.
        """

        destination = self._clamp(position)
        was_tracking = isinstance(self._session, Tracking)
        if was_tracking:
            self._close_session(self._last_position)

        self._last_position = destination
        if was_tracking:
            self._session = Tracking(anchor=destination)

        self._touch()
        self._save()
        self._notify()

    def update_position(self, position: float) -> None:
        """Record the resume point without touching watched coverage."""

        self._last_position = self._clamp(position)
        self._touch()
        self._save()
        self._notify()

    # Whole-state operations

    def reset(self) -> None:
        """Drop all progress for this video, including the stored record."""

        self._intervals = []
        self._last_position = 0.0
        self._total_progress = 0.0
        self._session = IDLE
        self._touch()
        try:
            self._store.delete(self._storage_key)
        except StorageError:
            logger.error(
                "Failed to delete stored progress",
                exc_info=True,
                extra={"video_id": self._video_id},
            )
        logger.info("Progress reset", extra={"video_id": self._video_id})
        self._notify()

    def export_progress_data(self) -> str:
        """Serialize progress to indented JSON."""

        payload = ProgressExport(
            video_id=self._video_id,
            intervals=list(self._intervals),
            last_position=self._last_position,
            total_progress=self._total_progress,
            exported_at=self._clock(),
        )
        return payload.model_dump_json(by_alias=True, indent=2)

    def import_progress_data(self, text: str | bytes) -> bool:
        """Replace progress with exported data for the same video.

        Returns ``False`` and leaves the tracker untouched when the text
        cannot be parsed or belongs to a different video.
        """

        payload = parse_export(text)
        if payload is None:
            logger.warning("Rejected unreadable progress import", extra={"video_id": self._video_id})
            return False
        if payload.video_id != self._video_id:
            logger.warning(
                "Rejected progress import for another video",
                extra={"video_id": self._video_id, "import_video_id": payload.video_id},
            )
            return False

        if isinstance(self._session, Tracking):
            # The open segment was anchored on the replaced timeline.
            logger.debug(
                "Discarding open segment on import",
                extra={"video_id": self._video_id, "anchor": self._session.anchor},
            )
            self._session = IDLE
        self._intervals = merge_intervals(payload.intervals)
        self._last_position = payload.last_position
        self._recalculate()
        self._touch()
        self._save()
        self._notify()
        logger.info(
            "Progress imported",
            extra={"video_id": self._video_id, "intervals": len(self._intervals)},
        )
        return True

    # Internals

    def _load(self) -> LoadStatus:
        try:
            raw = self._store.get(self._storage_key)
        except StorageError:
            logger.error(
                "Progress storage unavailable; starting empty",
                exc_info=True,
                extra={"video_id": self._video_id},
            )
            return "unavailable"

        if raw is None:
            logger.debug("No stored progress", extra={"video_id": self._video_id})
            return "absent"

        record = parse_persisted(raw)
        if record is None:
            logger.warning(
                "Stored progress is unreadable; starting empty",
                extra={"video_id": self._video_id, "storage_key": self._storage_key},
            )
            return "corrupt"

        self._intervals = merge_intervals(record.intervals)
        self._last_position = record.last_position
        self._recalculate()
        logger.debug(
            "Loaded stored progress",
            extra={"video_id": self._video_id, "intervals": len(self._intervals)},
        )
        return "loaded"

    def _close_session(self, position: float) -> WatchedInterval | None:
        session = self._session
        self._session = IDLE
        if not isinstance(session, Tracking):
            return None

        anchor = self._clamp(session.anchor)
        position = self._clamp(position)
        start, end = min(anchor, position), max(anchor, position)
        if end - start < self._min_segment:
            logger.debug(
                "Discarding short segment",
                extra={"video_id": self._video_id, "start": start, "end": end},
            )
            return None

        interval = WatchedInterval(start=start, end=end)
        self._intervals = merge_intervals([*self._intervals, interval])
        self._recalculate()
        return interval

    def _recalculate(self) -> None:
        if not _usable_duration(self._duration):
            return
        watched = sum(interval.length for interval in self._intervals)
        self._total_progress = min(100.0, watched / self._duration * 100.0)

    def _clamp(self, position: float) -> float:
        value = float(position)
        if not math.isfinite(value):
            raise ValueError("Playback position must be a finite number")
        value = max(0.0, value)
        if _usable_duration(self._duration):
            value = min(value, self._duration)
        return value

    def _touch(self) -> None:
        self._updated_at = self._clock()

    def _save(self) -> None:
        record = PersistedProgress(intervals=self._intervals, last_position=self._last_position)
        try:
            self._store.set(self._storage_key, record.model_dump_json(by_alias=True))
        except StorageError:
            logger.error(
                "Failed to persist progress",
                exc_info=True,
                extra={"video_id": self._video_id},
            )

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update(self.get_progress_data())


__all__ = [
    "LoadStatus",
    "MIN_SEGMENT_SECONDS",
    "ProgressCallback",
    "ProgressTracker",
    "STORAGE_KEY_PREFIX",
    "parse_export",
    "parse_persisted",
    "storage_key",
]
