from __future__ import annotations

import pytest

from watchcover.storage import MemoryStore
from watchcover.tracking import PlaybackEvent, PlaybackSessionAdapter, ProgressTracker, Tracking


def make_adapter(duration: float = 100.0) -> PlaybackSessionAdapter:
    tracker = ProgressTracker("lecture-1", duration, store=MemoryStore())
    return PlaybackSessionAdapter(tracker)


def play_through(adapter: PlaybackSessionAdapter, start: float, end: float, step: float = 0.25) -> None:
    position = start
    while position < end:
        position = min(end, position + step)
        adapter.time_update(position)


def pairs(adapter: PlaybackSessionAdapter) -> list[tuple[float, float]]:
    return [(interval.start, interval.end) for interval in adapter.tracker.merged_intervals]


def test_play_pause_records_segment() -> None:
    adapter = make_adapter()
    adapter.play(0)
    play_through(adapter, 0, 12)
    adapter.pause(12)
    assert pairs(adapter) == [(0, 12)]
    assert adapter.tracker.last_position == 12
    assert not adapter.playing


def test_redundant_play_events_do_not_reanchor() -> None:
    adapter = make_adapter()
    adapter.play(0)
    play_through(adapter, 0, 5)
    adapter.play(5)
    play_through(adapter, 5, 10)
    adapter.pause(10)
    assert pairs(adapter) == [(0, 10)]


def test_explicit_seek_splits_coverage() -> None:
    adapter = make_adapter()
    adapter.play(0)
    play_through(adapter, 0, 10)
    adapter.seek(60)
    assert adapter.seeking
    play_through(adapter, 60, 70)
    adapter.pause(70)

    assert not adapter.seeking
    assert pairs(adapter) == [(0, 10), (60, 70)]
    assert adapter.tracker.progress_percentage == pytest.approx(20.0)


def test_seek_while_paused_then_play() -> None:
    adapter = make_adapter()
    adapter.seek(30)
    adapter.time_update(30)
    adapter.play(30)
    play_through(adapter, 30, 45)
    adapter.ended(45)
    assert pairs(adapter) == [(30, 45)]


def test_stale_tick_during_seek_is_ignored() -> None:
    adapter = make_adapter()
    adapter.play(0)
    play_through(adapter, 0, 10)
    adapter.seek(60)
    adapter.time_update(10.25)
    assert adapter.seeking
    assert adapter.tracker.last_position == 60
    play_through(adapter, 60, 65)
    adapter.pause(65)
    assert pairs(adapter) == [(0, 10), (60, 65)]


def test_large_time_jump_is_an_implicit_seek() -> None:
    adapter = make_adapter()
    adapter.play(0)
    play_through(adapter, 0, 20)
    adapter.time_update(80)
    assert adapter.tracker.session == Tracking(anchor=80)
    play_through(adapter, 80, 90)
    adapter.pause(90)
    assert pairs(adapter) == [(0, 20), (80, 90)]


def test_backward_jump_does_not_inflate() -> None:
    adapter = make_adapter()
    adapter.play(0)
    play_through(adapter, 0, 40)
    adapter.time_update(10)
    play_through(adapter, 10, 30)
    adapter.pause(30)
    assert pairs(adapter) == [(0, 40)]
    assert adapter.tracker.progress_percentage == pytest.approx(40.0)


def test_time_update_while_paused_moves_resume_point() -> None:
    adapter = make_adapter()
    adapter.time_update(55)
    assert adapter.tracker.last_position == 55
    assert adapter.tracker.merged_intervals == []


def test_ended_closes_session() -> None:
    adapter = make_adapter(duration=30)
    adapter.play(0)
    play_through(adapter, 0, 30)
    adapter.ended(30)
    assert not adapter.playing
    assert not adapter.tracker.is_tracking
    assert adapter.tracker.progress_percentage == 100.0


def test_duration_arriving_late() -> None:
    adapter = make_adapter(duration=0)
    adapter.play(0)
    play_through(adapter, 0, 25)
    adapter.pause(25)
    assert adapter.tracker.progress_percentage == 0

    adapter.duration_change(50)
    assert adapter.tracker.progress_percentage == pytest.approx(50.0)


def test_dispatch_routes_events() -> None:
    adapter = make_adapter()
    for event in [
        PlaybackEvent(kind="durationchange", duration=200),
        PlaybackEvent(kind="play", position=0),
        PlaybackEvent(kind="timeupdate", position=0.5),
        PlaybackEvent(kind="timeupdate", position=1.0),
        PlaybackEvent(kind="pause", position=20),
    ]:
        adapter.dispatch(event)
    assert pairs(adapter) == [(0, 20)]
    assert adapter.tracker.progress_percentage == pytest.approx(10.0)


def test_dispatch_rejects_durationchange_without_duration() -> None:
    adapter = make_adapter()
    with pytest.raises(ValueError):
        adapter.dispatch(PlaybackEvent(kind="durationchange"))


def test_adapter_can_be_rebuilt_without_losing_progress() -> None:
    adapter = make_adapter()
    adapter.play(0)
    play_through(adapter, 0, 10)
    adapter.pause(10)

    rebuilt = PlaybackSessionAdapter(adapter.tracker)
    rebuilt.play(10)
    play_through(rebuilt, 10, 15)
    rebuilt.pause(15)
    assert pairs(rebuilt) == [(0, 15)]


def test_seek_past_end_settles_on_clamped_position() -> None:
    adapter = make_adapter(duration=100.0)
    adapter.play(0)
    play_through(adapter, 0, 5)
    adapter.seek(150)
    assert adapter.tracker.last_position == 100

    adapter.time_update(100)
    assert not adapter.seeking
    assert adapter.tracker.last_position == 100
