"""
PeriodicScheduler -- in-process polling loop for the auto clock-out job.

Contract:
    ``tick()`` runs one job pass in its own session and transaction:
    commit on success, rollback and re-raise on failure.  ``start()``
    runs ticks on a background thread every ``tick_interval_seconds``;
    the loop logs a failed tick and keeps going.  ``stop()`` signals the
    loop, which finishes the session it is on and exits.

Non-goals:
    - NOT a distributed scheduler (no leader election).  Running two
      instances is safe (version checks make the loser fail cleanly) but
      wasteful.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from sqlalchemy.orm import Session

from overtime_kernel.logging_config import LogContext, get_logger

from overtime_batch.domain.types import SchedulerRunResult
from overtime_batch.services.auto_clock_out import AutoClockOutJob

logger = get_logger("batch.scheduler")

JobFactory = Callable[[Session, Callable[[], bool]], AutoClockOutJob]


class PeriodicScheduler:
    """Runs the auto clock-out job on a fixed cadence."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        job_factory: JobFactory,
        tick_interval_seconds: int = 300,
    ):
        if tick_interval_seconds <= 0:
            raise ValueError("tick_interval_seconds must be positive")
        self._session_factory = session_factory
        self._job_factory = job_factory
        self._tick_interval = tick_interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_result: SchedulerRunResult | None = None

    def tick(self) -> SchedulerRunResult:
        """Run one pass (public for testing and for ``--once``)."""
        began = time.monotonic()
        session = self._session_factory()
        try:
            with LogContext.bind(operation="auto_clock_out"):
                result = self._job_factory(session, self._stop_event.is_set).run()
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        self._last_result = result
        logger.debug(
            "scheduler_tick_completed",
            extra={
                "checked": result.checked,
                "clocked_out": result.clocked_out,
                "duration_ms": round((time.monotonic() - began) * 1000, 1),
            },
        )
        return result

    def start(self) -> None:
        """Run ticks on a daemon thread until ``stop()``; no-op if already running."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="overtime-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info("scheduler_started", extra={"tick_interval": self._tick_interval})

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the loop to finish."""
        self._stop_event.set()
        if self.is_running:
            self._thread.join(timeout=timeout)
        logger.info("scheduler_stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def last_result(self) -> SchedulerRunResult | None:
        return self._last_result

    def wait(self, timeout: float | None = None) -> bool:
        """Block until stop() is called; True if it was."""
        return self._stop_event.wait(timeout=timeout)

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("scheduler_tick_failed")
            self._stop_event.wait(timeout=self._tick_interval)
