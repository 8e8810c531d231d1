"""
overtime_kernel.services.session_monitor -- the one recompute and close path.

Responsibility:
    Applies ``usage_at`` / ``evaluate_thresholds`` to a persisted session:
    writes hours used/remaining, fires the once-only manager reminder and
    clock-out warning, and terminates sessions.  The interactive tracker
    and the periodic scheduler both go through this class, so they can
    never disagree about the arithmetic or double-fire a latch.

Architecture position:
    Kernel > Services.  Used by OvertimeSessionService and by
    overtime_batch's auto clock-out job.

Invariants enforced:
    - ``manager_notified_at`` / ``auto_clock_out_warning_at`` are written
      only while unset, and the write is flushed (version-checked) before
      the notification is dispatched.  A racing writer that already set the
      latch makes this flush fail with OptimisticLockError, so the
      notification is sent by exactly one of them.
    - Closing a session rolls its final hours into the parent request and
      clears the request's ``is_active``/``active_session_id`` only when
      they point at this session.
    - Sessions are closed at most once: every entry point requires ACTIVE,
      and the close is written by one version-checked flush.  Lookups made
      while closing run under ``no_autoflush`` so a lost race surfaces as
      OptimisticLockError from that flush, before anything is dispatched.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from overtime_kernel.domain import notification as notices
from overtime_kernel.domain.clock import Clock
from overtime_kernel.domain.notification import Notification
from overtime_kernel.domain.overtime import (
    OvertimeSessionStatus,
    SessionEndReason,
    TimeEntryOvertimeStatus,
)
from overtime_kernel.domain.usage import (
    SessionUsage,
    ThresholdEvaluation,
    UsageThresholds,
    evaluate_thresholds,
    to_hours,
    usage_at,
)
from overtime_kernel.exceptions import SessionNotActiveError
from overtime_kernel.logging_config import get_logger
from overtime_kernel.models.overtime_request import OvertimeRequestModel
from overtime_kernel.models.overtime_session import OvertimeSessionModel
from overtime_kernel.services.base import BaseService
from overtime_kernel.services.notification_service import NotificationDispatcher
from overtime_kernel.services.time_entry_ledger import TimeEntryLedger

logger = get_logger("services.session_monitor")

_SESSION = "OvertimeSession"


@dataclass(frozen=True)
class RefreshOutcome:
    usage: SessionUsage
    evaluation: ThresholdEvaluation
    manager_reminder_sent: bool = False
    clock_out_warning_sent: bool = False


class SessionMonitor(BaseService):
    """Recomputes, latches and closes overtime sessions."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        dispatcher: NotificationDispatcher | None = None,
        ledger: TimeEntryLedger | None = None,
        thresholds: UsageThresholds | None = None,
    ) -> None:
        super().__init__(session, clock)
        self._dispatcher = dispatcher or NotificationDispatcher()
        self._ledger = ledger or TimeEntryLedger(session, self.clock)
        self._thresholds = thresholds or UsageThresholds()

    @property
    def thresholds(self) -> UsageThresholds:
        return self._thresholds

    def observe(self, model: OvertimeSessionModel) -> tuple[SessionUsage, ThresholdEvaluation]:
        """Usage and threshold state at the current instant; writes nothing."""
        usage = usage_at(model.approved_hours, model.session_start_time, self.clock.now())
        return usage, evaluate_thresholds(usage, model.grace_period_minutes, self._thresholds)

    # ------------------------------------------------------------------
    # Recompute
    # ------------------------------------------------------------------

    def refresh(self, model: OvertimeSessionModel) -> RefreshOutcome:
        """Persist the current hours and fire any latch that is due."""
        self._require_active(model)
        now = self.clock.now()
        usage, evaluation = self.observe(model)

        model.hours_used = usage.hours_used
        model.hours_remaining = usage.hours_remaining
        model.updated_at = now

        pending: list[Notification] = []
        reminder = False
        warning = False

        if evaluation.manager_reminder_due and model.manager_notified_at is None:
            model.manager_notified_at = now
            reminder = True
            pending.append(
                notices.limit_approaching(
                    manager_id=model.manager_id,
                    organization_id=model.organization_id,
                    session_id=str(model.id),
                    user_id=model.user_id,
                    user_name=model.user_name,
                    hours_used=str(usage.hours_used),
                    hours_remaining=str(usage.hours_remaining),
                )
            )

        if evaluation.clock_out_warning_due and model.auto_clock_out_warning_at is None:
            model.auto_clock_out_warning_at = now
            warning = True
            pending.append(
                notices.clock_out_warning(
                    user_id=model.user_id,
                    organization_id=model.organization_id,
                    session_id=str(model.id),
                    minutes_remaining=self._thresholds.warning_window_minutes,
                )
            )

        self._flush(_SESSION, model.id)

        if reminder:
            logger.info(
                "manager_reminder_latched",
                extra={"session_id": str(model.id), "hours_used": usage.hours_used},
            )
        if warning:
            logger.info(
                "clock_out_warning_latched",
                extra={"session_id": str(model.id), "hours_remaining": usage.hours_remaining},
            )
        self._dispatcher.dispatch_all(pending)

        return RefreshOutcome(
            usage=usage,
            evaluation=evaluation,
            manager_reminder_sent=reminder,
            clock_out_warning_sent=warning,
        )

    # ------------------------------------------------------------------
    # Termination
    # ------------------------------------------------------------------

    def complete(self, model: OvertimeSessionModel) -> SessionUsage:
        """Worker clock-out: COMPLETED, flagged only when over budget."""
        self._require_active(model)
        with self.session.no_autoflush:
            usage = self._close(
                model,
                status=OvertimeSessionStatus.COMPLETED,
                end_reason=SessionEndReason.WORKER_CLOCK_OUT,
                flag=False,
            )
            self._ledger.record_session_end(
                model.timecard_entry_id,
                TimeEntryOvertimeStatus.EXCEEDED if usage.is_over_budget else TimeEntryOvertimeStatus.COMPLETED,
                usage.hours_used,
                session_id=model.id,
            )
        self._flush(_SESSION, model.id)

        logger.info(
            "overtime_session_completed",
            extra={
                "session_id": str(model.id),
                "hours_used": usage.hours_used,
                "exceeded_by": usage.exceeded_by,
            },
        )
        return usage

    def auto_clock_out(self, model: OvertimeSessionModel) -> SessionUsage:
        """Forced termination at budget + grace; the worker is clocked out too."""
        self._require_active(model)
        with self.session.no_autoflush:
            # A missing ledger entry is logged by the ledger and does not block closure
            self._ledger.auto_clock_out_user(model.organization_id, model.user_id, model.id)
            usage = self._close(
                model,
                status=OvertimeSessionStatus.AUTO_CLOCKED_OUT,
                end_reason=SessionEndReason.LIMIT_EXCEEDED,
                flag=True,
            )
        self._flush(_SESSION, model.id)

        logger.warning(
            "overtime_session_auto_clocked_out",
            extra={
                "session_id": str(model.id),
                "user_id": model.user_id,
                "hours_used": usage.hours_used,
                "exceeded_by": usage.exceeded_by,
            },
        )

        self._dispatcher.dispatch_all([
            notices.auto_clocked_out_worker(
                user_id=model.user_id,
                organization_id=model.organization_id,
                session_id=str(model.id),
            ),
            notices.auto_clocked_out_manager(
                manager_id=model.manager_id,
                organization_id=model.organization_id,
                session_id=str(model.id),
                user_id=model.user_id,
                user_name=model.user_name,
            ),
        ])
        return usage

    def force_close(
        self, model: OvertimeSessionModel, reason: SessionEndReason,
    ) -> SessionUsage:
        """Close a session that must not keep running (e.g. its request is gone)."""
        self._require_active(model)
        with self.session.no_autoflush:
            usage = self._close(
                model,
                status=OvertimeSessionStatus.AUTO_CLOCKED_OUT,
                end_reason=reason,
                flag=True,
            )
            self._ledger.record_session_end(
                model.timecard_entry_id,
                TimeEntryOvertimeStatus.AUTO_CLOCKED_OUT,
                usage.hours_used,
                session_id=model.id,
            )
        self._flush(_SESSION, model.id)

        logger.warning(
            "overtime_session_force_closed",
            extra={
                "session_id": str(model.id),
                "end_reason": reason.value,
                "hours_used": usage.hours_used,
            },
        )
        return usage

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require_active(self, model: OvertimeSessionModel) -> None:
        if not model.is_active:
            raise SessionNotActiveError(str(model.id), model.status)

    def _close(
        self,
        model: OvertimeSessionModel,
        *,
        status: OvertimeSessionStatus,
        end_reason: SessionEndReason,
        flag: bool,
    ) -> SessionUsage:
        now = self.clock.now()
        usage, _ = self.observe(model)

        model.hours_used = usage.hours_used
        model.hours_remaining = usage.hours_remaining
        model.exceeded_by = usage.exceeded_by
        model.flagged_for_review = flag or usage.is_over_budget
        model.status = status.value
        model.end_reason = end_reason.value
        model.session_end_time = now
        model.updated_at = now

        self._roll_up(model, usage.hours_used)
        return usage

    def _roll_up(self, model: OvertimeSessionModel, final_hours: Decimal) -> None:
        request = self.session.get(OvertimeRequestModel, model.overtime_request_id)
        if request is None:
            logger.warning(
                "overtime_request_missing_on_close",
                extra={
                    "session_id": str(model.id),
                    "request_id": str(model.overtime_request_id),
                },
            )
            return

        request.hours_used = to_hours(request.hours_used + final_hours)
        if request.approved_hours is not None:
            request.hours_remaining = max(
                Decimal("0.00"), to_hours(request.approved_hours - request.hours_used),
            )
        if request.active_session_id in (None, model.id):
            request.is_active = False
            request.active_session_id = None
        request.updated_at = self.clock.now()
