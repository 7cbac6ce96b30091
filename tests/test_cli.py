from __future__ import annotations

import argparse
import importlib.util
import json
from pathlib import Path

import pytest

from watchcover.storage import MemoryStore


def load_diag(module_name: str):
    module_path = Path(__file__).resolve().parents[1] / "scripts" / "watchcover_diag.py"
    spec = importlib.util.spec_from_file_location(module_name, module_path)
    assert spec and spec.loader
    diag = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(diag)
    return diag


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(
        {
            "videoProgress-intro": json.dumps(
                {"intervals": [{"start": 0, "end": 30}, {"start": 50, "end": 60}], "lastPos": 65}
            ),
            "videoProgress-outro": json.dumps({"intervals": [], "lastPos": 0}),
            "videoProgress-broken": "{oops",
        }
    )


@pytest.fixture
def diag(monkeypatch: pytest.MonkeyPatch, store: MemoryStore):
    module = load_diag("watchcover_diag_test_module")
    monkeypatch.setenv("WATCHCOVER_STORAGE_BACKEND", "chroma")
    monkeypatch.setattr(module, "load_store", lambda _settings: store)
    return module


def test_list_outputs_video_ids(diag, capsys) -> None:
    diag.cmd_list(argparse.Namespace(json=True))
    assert json.loads(capsys.readouterr().out) == ["broken", "intro", "outro"]


def test_show_reports_progress(diag, capsys) -> None:
    diag.cmd_show(argparse.Namespace(video_id="intro", duration=100.0, json=True))
    payload = json.loads(capsys.readouterr().out)
    assert payload["loadStatus"] == "loaded"
    assert payload["totalProgress"] == pytest.approx(40.0)
    assert payload["lastPosition"] == 65


def test_show_text_mentions_resume_point(diag, capsys) -> None:
    diag.cmd_show(argparse.Namespace(video_id="intro", duration=100.0, json=False))
    output = capsys.readouterr().out
    assert "resume at 1:05" in output
    assert "0:50 - 1:00" in output
    assert "progress 40.0%" in output


def test_show_flags_corrupt_record(diag, capsys) -> None:
    diag.cmd_show(argparse.Namespace(video_id="broken", duration=None, json=False))
    assert "[corrupt]" in capsys.readouterr().out


def test_export_then_import(diag, store, capsys, tmp_path: Path) -> None:
    diag.cmd_export(argparse.Namespace(video_id="intro", duration=100.0))
    exported = capsys.readouterr().out
    assert json.loads(exported)["videoId"] == "intro"

    diag.cmd_reset(argparse.Namespace(video_id="intro"))
    assert "videoProgress-intro" not in store
    capsys.readouterr()

    export_file = tmp_path / "intro.json"
    export_file.write_text(exported, encoding="utf-8")
    diag.cmd_import(argparse.Namespace(video_id="intro", file=str(export_file)))
    assert "Imported 2 span(s)" in capsys.readouterr().out
    assert json.loads(store.get("videoProgress-intro"))["lastPos"] == 65


def test_import_rejects_other_video(diag, capsys, tmp_path: Path) -> None:
    diag.cmd_export(argparse.Namespace(video_id="intro", duration=None))
    export_file = tmp_path / "intro.json"
    export_file.write_text(capsys.readouterr().out, encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        diag.cmd_import(argparse.Namespace(video_id="outro", file=str(export_file)))
    assert excinfo.value.code == 1
    assert "Import rejected" in capsys.readouterr().out


def test_memory_backend_is_refused(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    module = load_diag("watchcover_diag_memory_module")
    monkeypatch.setenv("WATCHCOVER_STORAGE_BACKEND", "memory")
    with pytest.raises(SystemExit):
        module.cmd_list(argparse.Namespace(json=False))
    assert "Storage unavailable" in capsys.readouterr().out


def test_parser_without_command_prints_help(capsys) -> None:
    module = load_diag("watchcover_diag_help_module")
    module.main([])
    assert "watchcover diagnostics" in capsys.readouterr().out
