from datetime import datetime, timedelta, timezone

import pytest

from worktimer.domain import Timer, TimerAlreadyPausedError

BASE = datetime(2026, 4, 25, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "timer, now, want",
    [
        (Timer(started_at=BASE, paused_total_sec=0), BASE + timedelta(seconds=60), 60),
        (Timer(started_at=BASE, paused_total_sec=20), BASE + timedelta(seconds=60), 40),
        (
            Timer(started_at=BASE, paused_at=BASE + timedelta(seconds=30)),
            BASE + timedelta(seconds=60),
            30,
        ),
        (Timer(started_at=BASE, paused_at=BASE), BASE + timedelta(seconds=60), 0),
        (Timer(started_at=BASE, paused_total_sec=9999), BASE + timedelta(seconds=10), 0),
    ],
    ids=[
        "running for 60s",
        "running with prior pause",
        "currently paused",
        "paused entire duration",
        "negative clamped",
    ],
)
def test_elapsed_sec(timer, now, want):
    assert timer.elapsed_sec(now) == want


def test_is_paused():
    assert Timer(started_at=BASE).is_paused() is False
    assert Timer(started_at=BASE, paused_at=BASE).is_paused() is True


def test_timer_state_error_carries_timer():
    timer = Timer(started_at=BASE, task_title="T")
    err = TimerAlreadyPausedError(timer=timer)
    assert err.timer is timer
    assert str(err) == "timer is already paused"