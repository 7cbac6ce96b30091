from __future__ import annotations

from pathlib import Path

import pytest

from watchcover import __version__
from watchcover.config import WatchcoverSettings
from watchcover.server import build_status_payload, build_store, create_server
from watchcover.storage import ChromaKeyValueStore, ChromaUnavailableError, MemoryStore
from watchcover.tools import summarize_tracker
from watchcover.tracking import ProgressTracker


def make_settings(monkeypatch: pytest.MonkeyPatch, backend: str, tmp_path: Path) -> WatchcoverSettings:
    monkeypatch.setenv("WATCHCOVER_STORAGE_BACKEND", backend)
    monkeypatch.setenv("CHROMA_PERSIST_PATH", str(tmp_path / "chroma"))
    return WatchcoverSettings(_env_file=None)


def test_memory_backend(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    store, metadata = build_store(make_settings(monkeypatch, "memory", tmp_path))
    assert isinstance(store, MemoryStore)
    assert metadata["available"] is True
    assert metadata["backend"] == "memory"


def test_chroma_unavailable_is_reported(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fail_ping(self) -> bool:
        raise ChromaUnavailableError("chromadb package is not installed")

    monkeypatch.setattr(ChromaKeyValueStore, "ping", fail_ping)
    store, metadata = build_store(make_settings(monkeypatch, "chroma", tmp_path))
    assert store is None
    assert metadata["available"] is False
    assert "not installed" in metadata["error"]
    assert metadata["path"] == str(tmp_path / "chroma")


def test_chroma_available(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(ChromaKeyValueStore, "ping", lambda self: True)
    store, metadata = build_store(make_settings(monkeypatch, "chroma", tmp_path))
    assert isinstance(store, ChromaKeyValueStore)
    assert metadata["available"] is True
    assert metadata["collection"] == "watch_progress"


def test_create_server_with_injected_store(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    store = MemoryStore()
    server = create_server(make_settings(monkeypatch, "memory", tmp_path), store=store)

    assert getattr(server, "store") is store
    assert getattr(server, "storage_metadata")["available"] is True
    assert getattr(server, "registry") == {}


def test_status_payload_lists_videos(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    tracker = ProgressTracker("intro", 100, store=MemoryStore())
    tracker.start_tracking(0)

    payload = build_status_payload(
        settings=make_settings(monkeypatch, "memory", tmp_path),
        storage_metadata={"backend": "memory", "available": True},
        summaries=[summarize_tracker(tracker)],
    )
    assert payload["server_version"] == __version__
    assert payload["videos"]["count"] == 1
    assert payload["videos"]["tracking"] == ["intro"]
    assert payload["thresholds"]["min_segment_seconds"] == 1.0
