"""Tests for the manual and threaded schedulers."""

from __future__ import annotations

import threading

import pytest

from core.scheduler import ManualScheduler, ScheduledCall, TimerScheduler


def test_manual_scheduler_fires_in_due_order() -> None:
    scheduler = ManualScheduler()
    fired: list[str] = []
    scheduler.call_later(2.0, lambda: fired.append("late"))
    scheduler.call_later(1.0, lambda: fired.append("early"))
    scheduler.call_later(1.0, lambda: fired.append("early-second"))

    assert scheduler.advance(0.5) == 0
    assert scheduler.advance(2.0) == 3
    assert fired == ["early", "early-second", "late"]
    assert scheduler.monotonic() == 2.5


def test_manual_scheduler_clock_matches_due_time_inside_callback() -> None:
    scheduler = ManualScheduler(start_time=100.0)
    seen: list[float] = []
    scheduler.call_later(1.5, lambda: seen.append(scheduler.now()))

    scheduler.advance(10.0)

    assert seen == [101.5]
    assert scheduler.now() == 110.0


def test_cancelled_call_does_not_fire() -> None:
    scheduler = ManualScheduler()
    fired: list[int] = []
    call = scheduler.call_later(1.0, lambda: fired.append(1))

    call.cancel()
    scheduler.advance(5.0)

    assert fired == []
    assert call.cancelled is True
    assert scheduler.pending() == 0


def test_periodic_call_repeats_until_cancelled() -> None:
    scheduler = ManualScheduler()
    ticks: list[float] = []
    call = scheduler.call_every(2.0, lambda: ticks.append(scheduler.monotonic()))

    scheduler.advance(7.0)
    assert ticks == [2.0, 4.0, 6.0]
    assert call.fired == 3

    call.cancel()
    scheduler.advance(10.0)
    assert len(ticks) == 3


def test_call_every_rejects_non_positive_interval() -> None:
    scheduler = ManualScheduler()

    with pytest.raises(ValueError):
        scheduler.call_every(0.0, lambda: None)


def test_callback_error_is_counted_and_loop_continues() -> None:
    scheduler = ManualScheduler()
    fired: list[str] = []

    def _boom() -> None:
        raise RuntimeError("boom")

    scheduler.call_later(1.0, _boom)
    scheduler.call_later(2.0, lambda: fired.append("after"))
    scheduler.advance(3.0)

    assert scheduler.errors == 1
    assert fired == ["after"]


def test_callbacks_scheduled_from_callbacks_fire_in_same_advance() -> None:
    scheduler = ManualScheduler()
    fired: list[str] = []

    def _first() -> None:
        fired.append("first")
        scheduler.call_later(1.0, lambda: fired.append("second"))

    scheduler.call_later(1.0, _first)
    scheduler.advance(2.0)

    assert fired == ["first", "second"]


def test_stop_discards_pending_calls() -> None:
    scheduler = ManualScheduler()
    fired: list[int] = []
    scheduler.call_later(1.0, lambda: fired.append(1))
    scheduler.call_every(1.0, lambda: fired.append(2))

    scheduler.stop()
    scheduler.advance(5.0)

    assert fired == []


def test_timer_scheduler_runs_callbacks_on_worker_thread() -> None:
    scheduler = TimerScheduler(idle_wait_s=0.05)
    done = threading.Event()
    threads: list[str] = []

    def _callback() -> None:
        threads.append(threading.current_thread().name)
        done.set()

    try:
        scheduler.call_later(0.05, _callback)
        assert done.wait(timeout=2.0)
        assert scheduler.is_loop_alive() is True
    finally:
        scheduler.stop()

    assert threads == ["csm-scheduler"]
    assert scheduler.is_loop_alive() is False


def test_timer_scheduler_periodic_and_cancel() -> None:
    scheduler = TimerScheduler(idle_wait_s=0.05)
    reached = threading.Event()
    ticks: list[int] = []

    def _tick() -> None:
        ticks.append(1)
        if len(ticks) >= 3:
            reached.set()

    try:
        call = scheduler.call_every(0.02, _tick)
        assert reached.wait(timeout=2.0)
        call.cancel()
    finally:
        scheduler.stop()

    assert len(ticks) >= 3


def test_timer_scheduler_does_not_restart_after_stop() -> None:
    scheduler = TimerScheduler(idle_wait_s=0.05)
    scheduler.start()
    scheduler.stop()

    scheduler.call_later(0.01, lambda: None)

    assert scheduler.is_loop_alive() is False


def test_reschedule_ignores_one_shot_calls() -> None:
    scheduler = ManualScheduler()
    call = ScheduledCall(1.0, lambda: None)

    scheduler._reschedule(call)

    assert scheduler.pending() == 0
    assert call.due == 1.0
