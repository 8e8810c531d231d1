"""
AutoClockOutJob -- one pass of the periodic overtime check.

Contract:
    ``run()`` scans every ACTIVE session and, for each one inside its own
    SAVEPOINT, recomputes usage, fires due latches and force-terminates
    sessions past budget + grace.  It is the sole authority for forced
    termination.

Invariants enforced:
    - Per-session isolation: a failure on one session rolls back that
      session's SAVEPOINT, is logged, and the pass continues.
    - A failure of the scan itself propagates to the scheduling layer.
    - A session whose request is no longer APPROVED is force-closed and
      flagged instead of being left running.
    - All timestamps come from the injected Clock.
"""

from __future__ import annotations

from collections.abc import Callable
from uuid import UUID

from sqlalchemy.orm import Session

from overtime_kernel.domain.clock import Clock, SystemClock
from overtime_kernel.domain.overtime import OvertimeRequestStatus, SessionEndReason
from overtime_kernel.logging_config import LogContext, get_logger
from overtime_kernel.models.overtime_request import OvertimeRequestModel
from overtime_kernel.models.overtime_session import OvertimeSessionModel
from overtime_kernel.selectors.session_selector import OvertimeSessionSelector
from overtime_kernel.services.session_monitor import SessionMonitor

from overtime_batch.domain.types import (
    SchedulerRunResult,
    SessionCheckAction,
    SessionCheckResult,
)

logger = get_logger("batch.auto_clock_out")


class AutoClockOutJob:
    """Checks every ACTIVE overtime session once."""

    def __init__(
        self,
        session: Session,
        monitor: SessionMonitor,
        clock: Clock | None = None,
        should_stop: Callable[[], bool] | None = None,
    ) -> None:
        self._session = session
        self._monitor = monitor
        self._clock = clock or SystemClock()
        self._should_stop = should_stop or (lambda: False)
        self._selector = OvertimeSessionSelector(session)

    def run(self) -> SchedulerRunResult:
        started_at = self._clock.now()
        session_ids = self._selector.active_session_ids()
        logger.info(
            "overtime_check_started",
            extra={"active_sessions": len(session_ids), "as_of": started_at},
        )

        items: list[SessionCheckResult] = []
        for session_id in session_ids:
            # Stop between sessions, never inside one
            if self._should_stop():
                logger.info("overtime_check_interrupted", extra={"processed": len(items)})
                break
            items.append(self._check_isolated(session_id))

        result = SchedulerRunResult.from_items(started_at, tuple(items))
        logger.info(
            "overtime_check_completed",
            extra={
                "checked": result.checked,
                "reminders": result.reminders,
                "warnings": result.warnings,
                "clocked_out": result.clocked_out,
                "force_closed": result.force_closed,
                "failed": result.failed,
            },
        )
        return result

    def _check_isolated(self, session_id: UUID) -> SessionCheckResult:
        with LogContext.bind(session_id=session_id):
            savepoint = self._session.begin_nested()
            try:
                result = self._check(session_id)
                savepoint.commit()
                return result
            except Exception as exc:
                savepoint.rollback()
                logger.exception(
                    "overtime_session_check_failed",
                    extra={"overtime_session_id": str(session_id)},
                )
                return SessionCheckResult(
                    session_id=session_id,
                    action=SessionCheckAction.FAILED,
                    error_message=str(exc),
                )

    def _check(self, session_id: UUID) -> SessionCheckResult:
        model = self._session.get(OvertimeSessionModel, session_id)
        if model is None or not model.is_active:
            return SessionCheckResult(session_id=session_id, action=SessionCheckAction.SKIPPED)

        request = self._session.get(OvertimeRequestModel, model.overtime_request_id)
        if request is None or request.status != OvertimeRequestStatus.APPROVED.value:
            self._monitor.force_close(model, SessionEndReason.REQUEST_NOT_APPROVED)
            return SessionCheckResult(
                session_id=session_id, action=SessionCheckAction.FORCE_CLOSED,
            )

        outcome = self._monitor.refresh(model)
        action = SessionCheckAction.REFRESHED
        if outcome.evaluation.auto_clock_out_due:
            self._monitor.auto_clock_out(model)
            action = SessionCheckAction.AUTO_CLOCKED_OUT

        return SessionCheckResult(
            session_id=session_id,
            action=action,
            manager_reminder_sent=outcome.manager_reminder_sent,
            clock_out_warning_sent=outcome.clock_out_warning_sent,
        )
