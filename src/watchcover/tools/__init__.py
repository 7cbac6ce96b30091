"""Tool registration for the watchcover MCP server."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastmcp import Context, FastMCP

from ..config import WatchcoverSettings
from ..formatting import format_progress, format_time
from ..storage import KeyValueStore
from ..tracking import PLAYBACK_EVENT_KINDS, PlaybackEvent, PlaybackSessionAdapter, ProgressTracker

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TrackedVideo:
    tracker: ProgressTracker
    adapter: PlaybackSessionAdapter


@dataclass(slots=True)
class ToolHandles:
    playback_event: Any
    progress_status: Any
    update_duration: Any
    reset_progress: Any
    export_progress: Any
    import_progress: Any
    list_tracked_videos: Any
    registry: dict[str, TrackedVideo]


def summarize_tracker(tracker: ProgressTracker) -> dict[str, Any]:
    """Return a JSON-friendly view of a tracker's state."""

    summary = tracker.get_progress_data().to_dict()
    summary.update(
        {
            "tracking": tracker.is_tracking,
            "loadStatus": tracker.load_status,
            "progressLabel": format_progress(tracker.progress_percentage),
            "resumeLabel": format_time(tracker.last_position),
        }
    )
    return summary


def register_tools(
    server: FastMCP,
    *,
    settings: WatchcoverSettings,
    store: KeyValueStore | None,
) -> ToolHandles:
    """Register watchcover's MCP tools on the server."""

    registry: dict[str, TrackedVideo] = {}

    def _require_store() -> KeyValueStore:
        if store is None:
            raise RuntimeError("Progress storage is unavailable; check the configured backend")
        return store

    def _tracked(video_id: str) -> TrackedVideo:
        key = video_id.strip()
        entry = registry.get(key)
        if entry is not None:
            return entry

        tracker = ProgressTracker(
            key,
            store=_require_store(),
            min_segment=settings.min_segment_seconds,
            key_prefix=settings.storage_key_prefix,
        )
        entry = TrackedVideo(
            tracker=tracker,
            adapter=PlaybackSessionAdapter(tracker, seek_threshold=settings.seek_threshold_seconds),
        )
        registry[tracker.video_id] = entry
        logger.info(
            "Tracking video",
            extra={"video_id": tracker.video_id, "load_status": tracker.load_status},
        )
        return entry

    def _playback_event(
        video_id: str,
        event: str,
        position: float = 0.0,
        duration: float | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Feed one player event (play, pause, timeupdate, seeking, ended, durationchange)."""

        kind = event.strip().lower()
        if kind not in PLAYBACK_EVENT_KINDS:
            raise ValueError(
                f"Unknown playback event '{event}'; expected one of {sorted(PLAYBACK_EVENT_KINDS)}"
            )

        entry = _tracked(video_id)
        if duration is not None and kind != "durationchange":
            entry.adapter.duration_change(duration)
        entry.adapter.dispatch(PlaybackEvent(kind=kind, position=position, duration=duration))  # type: ignore[arg-type]

        _emit_log(
            context,
            "debug",
            "Playback event applied",
            extra={"video_id": entry.tracker.video_id, "event": kind, "position": position},
        )
        return summarize_tracker(entry.tracker)

    def _progress_status(video_id: str, context: Context | None = None) -> dict[str, Any]:
        """Return watched coverage and percentage for a video."""

        return summarize_tracker(_tracked(video_id).tracker)

    def _update_duration(
        video_id: str,
        duration: float,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Set the media duration once it is known."""

        entry = _tracked(video_id)
        entry.adapter.duration_change(duration)
        return summarize_tracker(entry.tracker)

    def _reset_progress(video_id: str, context: Context | None = None) -> dict[str, Any]:
        """Erase all recorded progress for a video."""

        entry = _tracked(video_id)
        entry.tracker.reset()
        _emit_log(context, "info", "Progress reset", extra={"video_id": entry.tracker.video_id})
        return summarize_tracker(entry.tracker)

    def _export_progress(video_id: str, context: Context | None = None) -> dict[str, Any]:
        """Export progress as portable JSON text."""

        entry = _tracked(video_id)
        return {
            "videoId": entry.tracker.video_id,
            "payload": entry.tracker.export_progress_data(),
        }

    def _import_progress(
        video_id: str,
        payload: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Import progress previously exported for the same video."""

        entry = _tracked(video_id)
        imported = entry.tracker.import_progress_data(payload)
        _emit_log(
            context,
            "info" if imported else "warning",
            "Progress import processed",
            extra={"video_id": entry.tracker.video_id, "imported": imported},
        )
        return {"imported": imported, **summarize_tracker(entry.tracker)}

    def _list_tracked_videos(context: Context | None = None) -> list[dict[str, Any]]:
        """List videos tracked by this server process."""

        return [summarize_tracker(entry.tracker) for _, entry in sorted(registry.items())]

    tool_event = server.tool(
        name="playback_event",
        description="Apply a player event to a video's watch tracking and return its progress.",
    )(_playback_event)

    tool_status = server.tool(
        name="progress_status",
        description="Fetch merged watched intervals, resume point, and percent watched.",
    )(_progress_status)

    tool_duration = server.tool(
        name="update_duration",
        description="Set or change a video's duration and recompute its progress.",
    )(_update_duration)

    tool_reset = server.tool(
        name="reset_progress",
        description="Clear recorded coverage and resume point for a video.",
    )(_reset_progress)

    tool_export = server.tool(
        name="export_progress",
        description="Export a video's progress as JSON text.",
    )(_export_progress)

    tool_import = server.tool(
        name="import_progress",
        description="Import exported progress JSON; rejected when the video id differs.",
    )(_import_progress)

    tool_list = server.tool(
        name="list_tracked_videos",
        description="List every video tracked since the server started.",
    )(_list_tracked_videos)

    return ToolHandles(
        playback_event=tool_event,
        progress_status=tool_status,
        update_duration=tool_duration,
        reset_progress=tool_reset,
        export_progress=tool_export,
        import_progress=tool_import,
        list_tracked_videos=tool_list,
        registry=registry,
    )


def _emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Log through the MCP context logger when one is attached, else the module logger."""

    payload = extra or {}

    if context is not None:
        ctx_logger = getattr(context, "logger", None)
        if ctx_logger is not None:
            log_method = getattr(ctx_logger, level, None)
            if callable(log_method):
                log_method(message, extra=payload)
                return

    fallback = getattr(logger, level, logger.info)
    fallback(message, extra=payload)


__all__ = ["ToolHandles", "TrackedVideo", "register_tools", "summarize_tracker"]
