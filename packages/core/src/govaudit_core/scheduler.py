"""Fixed-interval runner with a single-pass guard.

The scheduler owns the idle/running state. A tick that arrives while a pass
is still running does nothing. A failing pass is logged and the scheduler
goes back to idle, so the next tick starts fresh.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


class Scheduler:
    def __init__(self, job: Callable[[Callable[[], bool]], object], interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._job = job
        self._interval = interval_seconds
        self._state = SchedulerState.IDLE
        self._lock = threading.Lock()
        self._stop = threading.Event()

    @property
    def state(self) -> SchedulerState:
        return self._state

    def cancelled(self) -> bool:
        return self._stop.is_set()

    def tick(self) -> bool:
        """Run one pass unless one is already in flight. Returns whether a pass ran."""
        with self._lock:
            if self._state is SchedulerState.RUNNING:
                logger.debug("Previous pass still running; tick skipped")
                return False
            self._state = SchedulerState.RUNNING
        try:
            self._job(self.cancelled)
        except Exception:
            logger.exception("Pass failed")
        finally:
            with self._lock:
                self._state = SchedulerState.IDLE
        return True

    def run_forever(self) -> None:
        """Tick every interval until stop() is called."""
        logger.info("Scheduler started (every %ss)", self._interval)
        while not self._stop.is_set():
            self.tick()
            self._stop.wait(self._interval)
        logger.info("Scheduler stopped")

    def stop(self) -> None:
        self._stop.set()
