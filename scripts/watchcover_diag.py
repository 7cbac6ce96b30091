"""watchcover diagnostics CLI."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from watchcover.config import WatchcoverSettings
from watchcover.formatting import format_progress, format_time
from watchcover.storage import ChromaKeyValueStore, StorageError
from watchcover.tracking import ProgressTracker


def load_store(settings: WatchcoverSettings) -> ChromaKeyValueStore:
    if settings.storage_backend != "chroma":
        print("Storage unavailable: the memory backend keeps nothing between runs")
        raise SystemExit(1)
    store = ChromaKeyValueStore(
        settings.chroma_persist_path,
        collection_name=settings.chroma_collection,
    )
    try:
        store.ping()
    except StorageError as exc:
        print(f"Storage unavailable: {exc}")
        raise SystemExit(1)
    return store


def open_tracker(settings: WatchcoverSettings, video_id: str, duration: float = 0.0) -> ProgressTracker:
    return ProgressTracker(
        video_id,
        duration,
        store=load_store(settings),
        min_segment=settings.min_segment_seconds,
        key_prefix=settings.storage_key_prefix,
    )


def cmd_list(args: argparse.Namespace) -> None:
    settings = WatchcoverSettings()
    store = load_store(settings)
    prefix = settings.storage_key_prefix
    video_ids = [key[len(prefix):] for key in store.keys(prefix)]
    if args.json:
        print(json.dumps(video_ids, indent=2))
    else:
        for video_id in video_ids:
            print(video_id)


def cmd_show(args: argparse.Namespace) -> None:
    settings = WatchcoverSettings()
    tracker = open_tracker(settings, args.video_id, args.duration or 0.0)
    state = tracker.get_progress_data()
    if args.json:
        payload = state.to_dict()
        payload["loadStatus"] = tracker.load_status
        print(json.dumps(payload, indent=2))
        return

    print(f"{state.video_id} [{tracker.load_status}]")
    print(f"  resume at {format_time(state.last_position)}")
    print(f"  watched {state.watched_seconds:.1f}s in {len(state.intervals)} span(s)")
    for interval in state.intervals:
        print(f"    {format_time(interval.start)} - {format_time(interval.end)}")
    if args.duration:
        print(f"  progress {format_progress(state.total_progress)}")


def cmd_export(args: argparse.Namespace) -> None:
    settings = WatchcoverSettings()
    tracker = open_tracker(settings, args.video_id, args.duration or 0.0)
    print(tracker.export_progress_data())


def cmd_import(args: argparse.Namespace) -> None:
    settings = WatchcoverSettings()
    tracker = open_tracker(settings, args.video_id)
    text = Path(args.file).read_text(encoding="utf-8")
    if not tracker.import_progress_data(text):
        print(f"Import rejected for {tracker.video_id}: unreadable data or another video's export")
        raise SystemExit(1)
    print(f"Imported {len(tracker.merged_intervals)} span(s) into {tracker.video_id}")


def cmd_reset(args: argparse.Namespace) -> None:
    settings = WatchcoverSettings()
    tracker = open_tracker(settings, args.video_id)
    tracker.reset()
    print(f"Progress for {tracker.video_id} cleared")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="watchcover diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_list = sub.add_parser("list", help="List videos with stored progress")
    p_list.add_argument("--json", action="store_true", help="Output JSON")
    p_list.set_defaults(func=cmd_list)

    p_show = sub.add_parser("show", help="Show stored coverage for a video")
    p_show.add_argument("video_id")
    p_show.add_argument("--duration", type=float, default=None, help="Duration in seconds, for percent watched")
    p_show.add_argument("--json", action="store_true", help="Output JSON")
    p_show.set_defaults(func=cmd_show)

    p_export = sub.add_parser("export", help="Print a video's progress as export JSON")
    p_export.add_argument("video_id")
    p_export.add_argument("--duration", type=float, default=None)
    p_export.set_defaults(func=cmd_export)

    p_import = sub.add_parser("import", help="Import export JSON from a file")
    p_import.add_argument("video_id")
    p_import.add_argument("file")
    p_import.set_defaults(func=cmd_import)

    p_reset = sub.add_parser("reset", help="Delete stored progress for a video")
    p_reset.add_argument("video_id")
    p_reset.set_defaults(func=cmd_reset)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
