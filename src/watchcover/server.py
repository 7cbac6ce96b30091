"""FastMCP server bootstrap for watchcover."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastmcp import Context, FastMCP

from . import __version__
from .config import WatchcoverSettings, get_settings
from .storage import ChromaKeyValueStore, KeyValueStore, MemoryStore, StorageError
from .tools import register_tools, summarize_tracker


def configure_logging(level: str) -> None:
    """Configure root logging for the watchcover server."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def build_store(settings: WatchcoverSettings) -> tuple[KeyValueStore | None, dict[str, Any]]:
    """Construct the configured storage backend and describe its availability."""

    metadata: dict[str, Any] = {
        "backend": settings.storage_backend,
        "available": False,
        "path": None,
        "collection": None,
        "error": None,
    }

    if settings.storage_backend == "memory":
        metadata["available"] = True
        return MemoryStore(), metadata

    metadata["path"] = str(settings.chroma_persist_path)
    metadata["collection"] = settings.chroma_collection
    store = ChromaKeyValueStore(
        settings.chroma_persist_path,
        collection_name=settings.chroma_collection,
    )
    try:
        store.ping()
    except StorageError as exc:
        metadata["error"] = str(exc)
        logging.getLogger(__name__).warning(
            "Progress storage unavailable", extra={"backend": "chroma", "error": str(exc)}
        )
        return None, metadata

    metadata["available"] = True
    return store, metadata


def create_server(
    settings: Optional[WatchcoverSettings] = None,
    store: KeyValueStore | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server with tracking tools and a status resource."""

    settings = settings or get_settings()

    if store is None:
        store, storage_metadata = build_store(settings)
    else:
        storage_metadata = {
            "backend": type(store).__name__,
            "available": True,
            "path": None,
            "collection": None,
            "error": None,
        }

    server = FastMCP(
        name="watchcover",
        version=__version__,
        instructions=(
            "watchcover measures how much of a video was actually watched. Send "
            "player events with playback_event and read merged coverage and "
            "percent watched with progress_status."
        ),
    )

    handles = register_tools(server, settings=settings, store=store)
    registry = handles.registry

    @server.resource(
        "resource://watchcover/status",
        name="watchcover_status",
        title="watchcover Status",
        description="Current storage backend and tracked videos for this server.",
        mime_type="application/json",
        tags={"status", "health"},
    )
    def status_resource(context: Context) -> str:
        """Return a JSON string summarizing runtime state."""

        payload = build_status_payload(
            settings=settings,
            storage_metadata=storage_metadata,
            summaries=[summarize_tracker(entry.tracker) for _, entry in sorted(registry.items())],
        )
        payload["request_id"] = getattr(context, "request_id", None)
        return json.dumps(payload)

    setattr(server, "store", store)
    setattr(server, "storage_metadata", storage_metadata)
    setattr(server, "tool_handles", handles)
    setattr(server, "registry", registry)
    return server


def build_status_payload(
    *,
    settings: WatchcoverSettings,
    storage_metadata: dict[str, Any],
    summaries: list[dict[str, Any]],
) -> dict[str, Any]:
    active = [summary["videoId"] for summary in summaries if summary.get("tracking")]
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "server_version": __version__,
        "log_level": settings.log_level,
        "storage": storage_metadata,
        "thresholds": {
            "min_segment_seconds": settings.min_segment_seconds,
            "seek_threshold_seconds": settings.seek_threshold_seconds,
        },
        "videos": {
            "count": len(summaries),
            "tracking": active,
            "preview": summaries[-5:],
        },
    }


def main() -> None:
    """Entry point for running the watchcover MCP server via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    server = create_server(settings)
    logging.getLogger(__name__).info(
        "Launching watchcover MCP server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "storage_backend": settings.storage_backend,
            "storage_available": getattr(server, "storage_metadata", {}).get("available"),
        },
    )
    server.run()


if __name__ == "__main__":
    main()
