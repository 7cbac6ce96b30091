"""Translate player signals into tracker calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, get_args

from .tracker import ProgressTracker

logger = logging.getLogger(__name__)

PlaybackEventKind = Literal["play", "pause", "timeupdate", "seeking", "ended", "durationchange"]
PLAYBACK_EVENT_KINDS: frozenset[str] = frozenset(get_args(PlaybackEventKind))

SEEK_THRESHOLD_SECONDS = 1.0


@dataclass(slots=True, frozen=True)
class PlaybackEvent:
    """A discrete signal emitted by the playback source."""

    kind: PlaybackEventKind
    position: float = 0.0
    duration: float | None = None


class PlaybackSessionAdapter:
    """Bind a player's event stream to a ``ProgressTracker``.

    The adapter keeps only the bookkeeping needed to interpret the stream
    (whether playback is running, the last observed position, a pending seek)
    and can be rebuilt at any time without losing progress.
    """

    def __init__(self, tracker: ProgressTracker, *, seek_threshold: float = SEEK_THRESHOLD_SECONDS) -> None:
        if seek_threshold <= 0:
            raise ValueError("seek_threshold must be > 0")
        self._tracker = tracker
        self._seek_threshold = float(seek_threshold)
        self._observed = tracker.last_position
        self._playing = False
        self._seek_target: float | None = None

    @property
    def tracker(self) -> ProgressTracker:
        return self._tracker

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def seeking(self) -> bool:
        return self._seek_target is not None

    def play(self, position: float) -> None:
        self._playing = True
        self._seek_target = None
        self._observed = position
        self._tracker.start_tracking(position)

    def pause(self, position: float) -> None:
        self._playing = False
        self._observed = position
        self._tracker.stop_tracking(position)

    def time_update(self, position: float) -> None:
        """Follow the playhead, treating a large jump as a seek."""

        if self._seek_target is not None:
            if abs(position - self._seek_target) > self._seek_threshold:
                # stale tick from before the seek landed
                return
            self._seek_target = None

        previous = self._observed
        self._observed = position
        if self._tracker.is_tracking and abs(position - previous) > self._seek_threshold:
            logger.debug(
                "Implicit seek detected",
                extra={"video_id": self._tracker.video_id, "from": previous, "to": position},
            )
            self._tracker.handle_seek(position)
            return

        self._tracker.update_position(position)

    def seek(self, position: float) -> None:
        """Handle the start of an explicit seek to ``position``."""

        self._tracker.handle_seek(position)
        # the tracker clamps the destination to the timeline
        self._seek_target = self._tracker.last_position
        self._observed = self._seek_target

    def ended(self, position: float) -> None:
        self._playing = False
        self._seek_target = None
        self._observed = position
        self._tracker.stop_tracking(position)

    def duration_change(self, duration: float) -> None:
        self._tracker.set_duration(duration)

    def dispatch(self, event: PlaybackEvent) -> None:
        """Route a ``PlaybackEvent`` to its handler."""

        if event.kind == "play":
            self.play(event.position)
        elif event.kind == "pause":
            self.pause(event.position)
        elif event.kind == "timeupdate":
            self.time_update(event.position)
        elif event.kind == "seeking":
            self.seek(event.position)
        elif event.kind == "ended":
            self.ended(event.position)
        elif event.kind == "durationchange":
            if event.duration is None:
                raise ValueError("durationchange events require a duration")
            self.duration_change(event.duration)
        else:
            raise ValueError(f"Unknown playback event '{event.kind}'")


__all__ = [
    "PLAYBACK_EVENT_KINDS",
    "PlaybackEvent",
    "PlaybackEventKind",
    "PlaybackSessionAdapter",
    "SEEK_THRESHOLD_SECONDS",
]
