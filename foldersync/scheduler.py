"""Periodic runs with a start/stop lifecycle and overlap prevention."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Protocol

from foldersync.config.models import SchedulerConfig
from foldersync.interval import format_interval
from foldersync.models import SchedulerError, SyncCancelled, SyncRequest, SyncStatistics

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    idle = "idle"
    running = "running"


class RunsSynchronization(Protocol):
    def synchronize(
        self, request: SyncRequest, cancel: threading.Event | None = None
    ) -> SyncStatistics: ...


@dataclass(frozen=True)
class ScheduleHandle:
    """Describes an accepted :meth:`Scheduler.start` call."""

    request: SyncRequest
    interval: timedelta
    started_at: datetime


class Scheduler:
    """Triggers a synchronization every *interval*, anchored to the start time.

    At most one run is in flight. A tick that arrives while a run is still
    executing is skipped and logged, never queued. A failed run is logged
    and the schedule carries on.
    """

    def __init__(
        self,
        synchronizer: RunsSynchronization,
        config: SchedulerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._synchronizer = synchronizer
        self._config = config or SchedulerConfig()
        self._clock = clock

        self._state = SchedulerState.idle
        self._state_lock = threading.Lock()
        self._run_lock = threading.Lock()
        self._counter_lock = threading.Lock()

        self._stop: threading.Event | None = None
        self._run_cancel = threading.Event()
        self._thread: threading.Thread | None = None
        self._worker: threading.Thread | None = None

        self._runs_started = 0
        self._runs_completed = 0
        self._runs_failed = 0
        self._ticks_skipped = 0

    # -- Introspection -------------------------------------------------------

    @property
    def state(self) -> SchedulerState:
        with self._state_lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state is SchedulerState.running

    @property
    def runs_started(self) -> int:
        with self._counter_lock:
            return self._runs_started

    @property
    def runs_completed(self) -> int:
        with self._counter_lock:
            return self._runs_completed

    @property
    def runs_failed(self) -> int:
        with self._counter_lock:
            return self._runs_failed

    @property
    def ticks_skipped(self) -> int:
        with self._counter_lock:
            return self._ticks_skipped

    # -- Lifecycle -----------------------------------------------------------

    def start(
        self,
        request: SyncRequest,
        interval: timedelta,
        cancel: threading.Event | None = None,
    ) -> ScheduleHandle:
        """Begin periodic runs.

        *cancel*, when given, doubles as the stop signal: setting it halts
        the schedule the same way :meth:`stop` does.

        Raises:
            ValueError: if *interval* is not positive.
            SchedulerError: if the scheduler is already running.
        """
        if interval.total_seconds() <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")

        with self._state_lock:
            if self._state is SchedulerState.running:
                raise SchedulerError("Scheduler is already running")
            self._stop = cancel if cancel is not None else threading.Event()
            self._run_cancel = threading.Event()
            self._thread = threading.Thread(
                target=self._tick_loop,
                args=(request, interval, self._stop),
                name="foldersync-scheduler",
                daemon=True,
            )
            self._state = SchedulerState.running
            handle = ScheduleHandle(
                request=request,
                interval=interval,
                started_at=datetime.now(timezone.utc),
            )
            self._thread.start()

        logger.info(
            "Scheduler started: %s -> %s every %s",
            request.source,
            request.destination,
            format_interval(interval),
        )
        return handle

    def stop(self, wait: bool = True, cancel_in_flight: bool = False) -> None:
        """Halt the schedule. No-op when idle.

        An in-flight run finishes unless *cancel_in_flight* is set, in which
        case it aborts at its next phase boundary. With *wait*, blocks until
        the tick loop and any in-flight run have exited; ``join_timeout``
        caps that wait when configured.
        """
        with self._state_lock:
            if self._state is SchedulerState.idle:
                return
            self._state = SchedulerState.idle
            stop, thread = self._stop, self._thread
            self._thread = None

        if cancel_in_flight:
            self._run_cancel.set()
        if stop is not None:
            stop.set()

        if wait:
            current = threading.current_thread()
            timeout = self._config.join_timeout
            if thread is not None and thread is not current:
                thread.join(timeout=timeout)
            # Read after the tick loop exits so a run fired during shutdown is joined too.
            worker = self._worker
            if worker is not None and worker is not current:
                worker.join(timeout=timeout)
                if worker.is_alive():
                    logger.warning(
                        "Synchronization still running after %.1fs; not waiting further",
                        timeout,
                    )
        logger.info("Scheduler stopped")

    # -- Internals -----------------------------------------------------------

    def _tick_loop(
        self, request: SyncRequest, interval: timedelta, stop: threading.Event
    ) -> None:
        period = interval.total_seconds()
        anchor = self._clock()
        tick = 0 if self._config.run_on_start else 1

        while not stop.is_set():
            delay = anchor + tick * period - self._clock()
            if delay > 0 and stop.wait(delay):
                break
            if stop.is_set():
                break

            self._fire(request, tick)

            tick += 1
            elapsed_ticks = int((self._clock() - anchor) // period)
            if elapsed_ticks > tick:
                # Loop fell behind; ticks already in the past are dropped.
                with self._counter_lock:
                    self._ticks_skipped += elapsed_ticks - tick
                logger.warning(
                    "Scheduler fell behind, skipping %d tick(s)", elapsed_ticks - tick
                )
                tick = elapsed_ticks

    def _fire(self, request: SyncRequest, tick: int) -> None:
        if not self._run_lock.acquire(blocking=False):
            with self._counter_lock:
                self._ticks_skipped += 1
            logger.warning(
                "Tick %d skipped: previous synchronization is still running", tick
            )
            return

        worker = threading.Thread(
            target=self._run_once,
            args=(request, self._run_cancel),
            name=f"foldersync-run-{tick}",
            daemon=False,
        )
        self._worker = worker
        worker.start()

    def _run_once(self, request: SyncRequest, cancel: threading.Event) -> None:
        try:
            if cancel.is_set() or (self._stop is not None and self._stop.is_set()):
                return
            with self._counter_lock:
                self._runs_started += 1
            self._synchronizer.synchronize(request, cancel=cancel)
            with self._counter_lock:
                self._runs_completed += 1
        except SyncCancelled:
            logger.info("Scheduled synchronization cancelled")
        except Exception:
            with self._counter_lock:
                self._runs_failed += 1
            logger.exception("Scheduled synchronization failed; continuing with next tick")
        finally:
            self._run_lock.release()
