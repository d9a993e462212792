"""
Tests for timer transitions
"""

import pytest
from taskwise.services.timer import TimerState, elapsed_seconds, start_timer, stop_timer
from taskwise.utils.error_handler import TimerConflictError
from conftest import utc


def test_start_from_idle():
    state = start_timer(TimerState.idle(), "t1", utc(2024, 5, 1, 9))
    assert state.is_running_for("t1")
    assert state.started_at == utc(2024, 5, 1, 9)


def test_start_same_task_again_keeps_original_start():
    running = TimerState.running("t1", utc(2024, 5, 1, 9))
    assert start_timer(running, "t1", utc(2024, 5, 1, 10)) == running


def test_only_one_timer_runs():
    running = TimerState.running("t1", utc(2024, 5, 1, 9))
    with pytest.raises(TimerConflictError) as exc_info:
        start_timer(running, "t2", utc(2024, 5, 1, 9, 5))
    assert exc_info.value.running_task_id == "t1"
    assert running.is_running_for("t1")


def test_stop_produces_entry():
    running = TimerState.running("t1", utc(2024, 5, 1, 9))
    state, entry = stop_timer(running, "t1", utc(2024, 5, 1, 9, 25, 30))

    assert not state.is_running
    assert entry.start_time == utc(2024, 5, 1, 9)
    assert entry.end_time == utc(2024, 5, 1, 9, 25, 30)
    assert entry.duration == 25 * 60 + 30


def test_stop_immediately_gives_zero_duration():
    running = TimerState.running("t1", utc(2024, 5, 1, 9))
    _, entry = stop_timer(running, "t1", utc(2024, 5, 1, 9))
    assert entry.duration == 0


def test_stop_before_start_gives_zero_duration():
    running = TimerState.running("t1", utc(2024, 5, 1, 9, 0, 5))
    state, entry = stop_timer(running, "t1", utc(2024, 5, 1, 9))

    assert not state.is_running
    assert entry.duration == 0
    assert entry.start_time == entry.end_time == utc(2024, 5, 1, 9, 0, 5)


def test_stop_other_task_is_rejected():
    running = TimerState.running("t1", utc(2024, 5, 1, 9))
    with pytest.raises(TimerConflictError):
        stop_timer(running, "t2", utc(2024, 5, 1, 10))


def test_stop_when_idle_is_rejected():
    with pytest.raises(TimerConflictError):
        stop_timer(TimerState.idle(), "t1", utc(2024, 5, 1, 10))


def test_elapsed_seconds():
    running = TimerState.running("t1", utc(2024, 5, 1, 9))
    assert elapsed_seconds(running, utc(2024, 5, 1, 9, 1, 5)) == 65
    assert elapsed_seconds(TimerState.idle(), utc(2024, 5, 1, 9, 1, 5)) == 0
