"""Tests for the fixed-interval scheduler and its single-pass guard."""

import threading

import pytest

from govaudit_core.scheduler import Scheduler, SchedulerState


def test_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        Scheduler(lambda cancelled: None, interval_seconds=0)


def test_tick_runs_job_and_returns_to_idle():
    calls = []
    scheduler = Scheduler(lambda cancelled: calls.append(cancelled()), interval_seconds=10)
    assert scheduler.tick() is True
    assert calls == [False]
    assert scheduler.state is SchedulerState.IDLE


def test_tick_while_running_is_skipped():
    started = threading.Event()
    release = threading.Event()
    runs = []

    def job(cancelled):
        runs.append(1)
        started.set()
        release.wait(timeout=5)

    scheduler = Scheduler(job, interval_seconds=10)
    worker = threading.Thread(target=scheduler.tick)
    worker.start()
    assert started.wait(timeout=5)

    assert scheduler.state is SchedulerState.RUNNING
    assert scheduler.tick() is False

    release.set()
    worker.join(timeout=5)
    assert runs == [1]
    assert scheduler.state is SchedulerState.IDLE


def test_job_sees_running_state():
    seen = []
    scheduler = Scheduler(lambda cancelled: seen.append(scheduler.state), interval_seconds=10)
    scheduler.tick()
    assert seen == [SchedulerState.RUNNING]


def test_failing_job_returns_to_idle():
    def job(cancelled):
        raise RuntimeError("boom")

    scheduler = Scheduler(job, interval_seconds=10)
    assert scheduler.tick() is True
    assert scheduler.state is SchedulerState.IDLE
    assert scheduler.tick() is True


def test_stop_sets_cancelled():
    scheduler = Scheduler(lambda cancelled: None, interval_seconds=10)
    assert scheduler.cancelled() is False
    scheduler.stop()
    assert scheduler.cancelled() is True


def test_run_forever_stops_after_stop():
    runs = []

    def job(cancelled):
        runs.append(1)
        if len(runs) == 3:
            scheduler.stop()

    scheduler = Scheduler(job, interval_seconds=0.01)
    scheduler.run_forever()
    assert len(runs) == 3


def test_run_forever_does_nothing_when_already_stopped():
    runs = []
    scheduler = Scheduler(lambda cancelled: runs.append(1), interval_seconds=0.01)
    scheduler.stop()
    scheduler.run_forever()
    assert runs == []
