"""Tests for the scheduler: lifecycle, cadence, and overlap prevention."""

from __future__ import annotations

import logging
import threading
import time
from datetime import timedelta

import pytest

from conftest import FakeSynchronizer, wait_until
from foldersync.config.models import SchedulerConfig
from foldersync.models import SchedulerError, SyncRequest
from foldersync.scheduler import Scheduler, SchedulerState

REQUEST = SyncRequest(source="/src", destination="/dst")


@pytest.fixture
def scheduler(fake_synchronizer):
    sched = Scheduler(fake_synchronizer)
    yield sched
    sched.stop()


# ── lifecycle ────────────────────────────────────────────────────────


class TestLifecycle:
    def test_starts_idle(self, scheduler):
        assert scheduler.state is SchedulerState.idle
        assert not scheduler.is_running

    def test_stop_while_idle_is_noop(self, scheduler):
        scheduler.stop()
        scheduler.stop(wait=False)
        assert scheduler.state is SchedulerState.idle

    def test_start_then_stop(self, scheduler, fake_synchronizer):
        handle = scheduler.start(REQUEST, timedelta(seconds=60))
        assert scheduler.state is SchedulerState.running
        assert handle.request == REQUEST
        assert handle.interval == timedelta(seconds=60)

        assert wait_until(lambda: fake_synchronizer.calls == 1)
        scheduler.stop()
        assert scheduler.state is SchedulerState.idle

    def test_start_while_running_rejected(self, scheduler):
        scheduler.start(REQUEST, timedelta(seconds=60))
        with pytest.raises(SchedulerError, match="already running"):
            scheduler.start(REQUEST, timedelta(seconds=60))

    def test_restart_after_stop(self, scheduler, fake_synchronizer):
        scheduler.start(REQUEST, timedelta(seconds=60))
        assert wait_until(lambda: fake_synchronizer.calls == 1)
        scheduler.stop()
        scheduler.start(REQUEST, timedelta(seconds=60))
        assert scheduler.is_running
        assert wait_until(lambda: fake_synchronizer.calls == 2)

    @pytest.mark.parametrize("interval", [timedelta(0), timedelta(seconds=-1)])
    def test_non_positive_interval_rejected(self, scheduler, interval):
        with pytest.raises(ValueError):
            scheduler.start(REQUEST, interval)
        assert scheduler.state is SchedulerState.idle

    def test_external_cancel_halts_ticks(self, fake_synchronizer):
        cancel = threading.Event()
        sched = Scheduler(fake_synchronizer)
        sched.start(REQUEST, timedelta(milliseconds=20), cancel=cancel)
        assert wait_until(lambda: fake_synchronizer.calls >= 2)

        cancel.set()
        sched.stop()
        calls = fake_synchronizer.calls
        time.sleep(0.1)
        assert fake_synchronizer.calls == calls


# ── cadence ──────────────────────────────────────────────────────────


class TestCadence:
    def test_first_run_fires_on_start(self, scheduler, fake_synchronizer):
        scheduler.start(REQUEST, timedelta(hours=1))
        assert wait_until(lambda: fake_synchronizer.calls == 1, timeout=1.0)

    def test_run_on_start_disabled(self, fake_synchronizer):
        sched = Scheduler(fake_synchronizer, SchedulerConfig(run_on_start=False))
        sched.start(REQUEST, timedelta(hours=1))
        try:
            time.sleep(0.1)
            assert fake_synchronizer.calls == 0
        finally:
            sched.stop()

    def test_repeats_every_interval(self, scheduler, fake_synchronizer):
        scheduler.start(REQUEST, timedelta(milliseconds=20))
        assert wait_until(lambda: fake_synchronizer.calls >= 5)
        assert fake_synchronizer.requests[0] == REQUEST

    def test_no_ticks_after_stop(self, scheduler, fake_synchronizer):
        scheduler.start(REQUEST, timedelta(milliseconds=20))
        assert wait_until(lambda: fake_synchronizer.calls >= 2)
        scheduler.stop()
        calls = fake_synchronizer.calls
        time.sleep(0.1)
        assert fake_synchronizer.calls == calls


# ── overlap prevention ───────────────────────────────────────────────


class TestOverlap:
    def test_slow_runs_never_overlap(self, caplog):
        """A run longer than the interval causes ticks to be skipped, not stacked."""
        caplog.set_level(logging.WARNING, logger="foldersync")
        slow = FakeSynchronizer(duration=0.05)
        sched = Scheduler(slow)
        sched.start(REQUEST, timedelta(milliseconds=10))
        try:
            # At least 10 intervals elapse.
            time.sleep(0.3)
        finally:
            sched.stop()

        assert slow.max_in_flight == 1
        assert slow.calls >= 2
        assert sched.ticks_skipped > 0
        assert any("skipped" in r.getMessage() for r in caplog.records)

    def test_stop_waits_for_in_flight_run(self):
        slow = FakeSynchronizer(duration=0.2)
        sched = Scheduler(slow)
        sched.start(REQUEST, timedelta(seconds=60))
        assert wait_until(lambda: slow.in_flight == 1)

        sched.stop()
        assert slow.in_flight == 0
        assert sched.runs_completed == 1

    def test_stop_waits_for_long_run_by_default(self):
        assert SchedulerConfig().join_timeout is None
        slow = FakeSynchronizer(duration=0.6)
        sched = Scheduler(slow)
        sched.start(REQUEST, timedelta(seconds=60))
        assert wait_until(lambda: slow.in_flight == 1)

        sched.stop()
        assert slow.in_flight == 0
        assert sched.runs_completed == 1

    def test_join_timeout_caps_the_wait(self, caplog):
        caplog.set_level(logging.WARNING, logger="foldersync")
        slow = FakeSynchronizer(duration=0.6)
        sched = Scheduler(slow, SchedulerConfig(join_timeout=0.1))
        sched.start(REQUEST, timedelta(seconds=60))
        assert wait_until(lambda: slow.in_flight == 1)

        sched.stop()
        assert any("still running" in r.getMessage() for r in caplog.records)
        assert wait_until(lambda: slow.in_flight == 0)


# ── failures ─────────────────────────────────────────────────────────


class TestFailures:
    def test_failed_run_does_not_stop_schedule(self, caplog):
        caplog.set_level(logging.ERROR, logger="foldersync")
        flaky = FakeSynchronizer(fail_on={1})
        sched = Scheduler(flaky)
        sched.start(REQUEST, timedelta(milliseconds=20))
        try:
            assert wait_until(lambda: sched.runs_completed >= 2)
        finally:
            sched.stop()

        assert sched.runs_failed == 1
        assert sched.is_running is False
        assert any("failed" in r.getMessage() for r in caplog.records)

    def test_cancel_in_flight_aborts_at_phase_boundary(self):
        from foldersync.models import SyncStatistics
        from foldersync.synchronizer import Synchronizer

        entered = threading.Event()
        release = threading.Event()
        file_calls = []

        class SlowFolders:
            def synchronize(self, source, destination):
                entered.set()
                release.wait(2.0)
                return SyncStatistics()

        class Files:
            def synchronize(self, source, destination):
                file_calls.append(source)
                return SyncStatistics()

        sched = Scheduler(Synchronizer(SlowFolders(), Files()))
        sched.start(REQUEST, timedelta(seconds=60))
        assert entered.wait(2.0)

        stopper = threading.Thread(target=sched.stop, kwargs={"cancel_in_flight": True})
        stopper.start()
        time.sleep(0.05)
        release.set()
        stopper.join(2.0)

        assert file_calls == []
        assert sched.runs_completed == 0
        assert sched.runs_failed == 0
