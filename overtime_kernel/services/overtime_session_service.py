"""
overtime_kernel.services.overtime_session_service -- Live overtime sessions.

Responsibility:
    Starts a monitoring session for an APPROVED request, refreshes its
    hours on demand, ends it when the worker clocks out, and serves the
    live view of a worker's running session and the session history of
    a request.

Architecture position:
    Kernel > Services.  Arithmetic and latches are delegated to
    SessionMonitor, which the auto clock-out job shares.

Invariants enforced:
    - At most one ACTIVE session per worker and per request.  The
      read-side guards give clean errors; the partial unique index and the
      version-checked claim on the request close the race between two
      concurrent starts.
    - Daily cap: approved hours of today's ACTIVE and COMPLETED sessions
      (UTC calendar day of session start) plus the new session must not
      exceed the organization's ``daily_max_hours``.
    - The policy in force at start is snapshotted onto the session.

Failure modes:
    - OvertimeRequestNotFoundError / OvertimeSessionNotFoundError.
    - PermissionDeniedError: wrong organization, or caller is not the
      worker (start/end) or the worker or manager (update_hours).
    - InvalidRequestTransitionError: request is not APPROVED.
    - ActiveSessionConflictError / DailyLimitExceededError.
    - SessionNotActiveError on update/end of a closed session.
    - OptimisticLockError when another writer changed the request first.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from overtime_kernel.domain.clock import Clock
from overtime_kernel.domain.overtime import (
    LiveSessionView,
    OvertimeRequestStatus,
    OvertimeSession,
    OvertimeSessionStatus,
    SessionEndReport,
    SessionHoursReport,
)
from overtime_kernel.domain.usage import UsageThresholds, to_hours, usage_at
from overtime_kernel.exceptions import (
    ActiveSessionConflictError,
    DailyLimitExceededError,
    InvalidRequestTransitionError,
    OptimisticLockError,
    OvertimeRequestNotFoundError,
    OvertimeSessionNotFoundError,
    PermissionDeniedError,
)
from overtime_kernel.logging_config import get_logger
from overtime_kernel.models.overtime_request import OvertimeRequestModel
from overtime_kernel.models.overtime_session import OvertimeSessionModel
from overtime_kernel.selectors.session_selector import OvertimeSessionSelector
from overtime_kernel.services.base import BaseService
from overtime_kernel.services.notification_service import NotificationDispatcher
from overtime_kernel.services.policy_resolver import PolicyResolver
from overtime_kernel.services.session_monitor import SessionMonitor
from overtime_kernel.services.time_entry_ledger import TimeEntryLedger
from overtime_kernel.services.user_directory import UserDirectory

logger = get_logger("services.overtime_session")


def utc_day_bounds(instant: datetime) -> tuple[datetime, datetime]:
    """[start, end) of the UTC calendar day containing ``instant``."""
    day = instant.astimezone(timezone.utc).date()
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


class OvertimeSessionService(BaseService):
    """The overtime session tracker."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        dispatcher: NotificationDispatcher | None = None,
        policy_resolver: PolicyResolver | None = None,
        directory: UserDirectory | None = None,
        ledger: TimeEntryLedger | None = None,
        thresholds: UsageThresholds | None = None,
    ) -> None:
        super().__init__(session, clock)
        self._policies = policy_resolver or PolicyResolver(session)
        self._directory = directory or UserDirectory(session)
        self._ledger = ledger or TimeEntryLedger(session, self.clock)
        self._selector = OvertimeSessionSelector(session)
        self._monitor = SessionMonitor(
            session,
            clock=self.clock,
            dispatcher=dispatcher,
            ledger=self._ledger,
            thresholds=thresholds,
        )

    @property
    def monitor(self) -> SessionMonitor:
        return self._monitor

    def start(
        self,
        organization_id: str,
        overtime_request_id: UUID,
        timecard_entry_id: UUID,
        caller_id: str,
    ) -> OvertimeSession:
        """Open a session against an APPROVED request and the caller's clock-in."""
        request = self.session.get(OvertimeRequestModel, overtime_request_id)
        if request is None:
            raise OvertimeRequestNotFoundError(str(overtime_request_id))
        if request.organization_id != organization_id:
            raise PermissionDeniedError(
                caller_id, "start overtime session", "request belongs to another organization",
            )
        if request.status != OvertimeRequestStatus.APPROVED.value:
            raise InvalidRequestTransitionError(
                str(request.id), request.status, "start overtime session",
                "request is not approved",
            )
        if request.employee_id != caller_id:
            raise PermissionDeniedError(
                caller_id, "start overtime session", "request is for another worker",
            )

        running = self._selector.active_for_request(request.id)
        if running is not None or request.is_active:
            raise ActiveSessionConflictError(
                caller_id,
                str(running.session_id) if running else str(request.active_session_id),
            )
        running = self._selector.active_for_user(organization_id, caller_id)
        if running is not None:
            raise ActiveSessionConflictError(caller_id, str(running.session_id))

        policy = self._policies.resolve(organization_id)
        approved = to_hours(request.approved_hours or Decimal("0"))
        now = self.clock.now()
        day_start, day_end = utc_day_bounds(now)
        hours_today = to_hours(
            self._selector.approved_hours_started_between(
                organization_id, caller_id, day_start, day_end,
            )
        )
        if hours_today + approved > policy.daily_max_hours:
            logger.info(
                "daily_overtime_limit_refused",
                extra={
                    "user_id": caller_id,
                    "hours_today": hours_today,
                    "requested_hours": approved,
                    "daily_max_hours": policy.daily_max_hours,
                },
            )
            raise DailyLimitExceededError(
                caller_id, hours_today, approved, policy.daily_max_hours,
            )

        entry = self._ledger.require_for_user(timecard_entry_id, organization_id, caller_id)
        user_name = self._directory.display_name(caller_id)

        model = OvertimeSessionModel(
            id=uuid4(),
            organization_id=organization_id,
            overtime_request_id=request.id,
            user_id=caller_id,
            user_name=user_name,
            manager_id=request.manager_id,
            timecard_entry_id=entry.id,
            session_start_time=now,
            approved_hours=approved,
            hours_used=Decimal("0.00"),
            hours_remaining=approved,
            status=OvertimeSessionStatus.ACTIVE.value,
            daily_max_hours=policy.daily_max_hours,
            session_max_hours=approved,
            grace_period_minutes=policy.grace_period_minutes,
            flagged_for_review=False,
            created_at=now,
            updated_at=now,
        )
        self.session.add(model)

        # Claim the request; the version check makes this a compare-and-set
        request.is_active = True
        request.active_session_id = model.id
        request.updated_at = now
        try:
            self.session.flush()
        except StaleDataError as exc:
            raise OptimisticLockError("OvertimeRequest", str(request.id)) from exc
        except IntegrityError as exc:
            raise ActiveSessionConflictError(caller_id) from exc

        self._ledger.stamp_session_start(entry, model.id, request.id)
        self._flush("TimeEntry", entry.id)

        logger.info(
            "overtime_session_started",
            extra={
                "session_id": str(model.id),
                "request_id": str(request.id),
                "user_id": caller_id,
                "approved_hours": approved,
                "grace_period_minutes": policy.grace_period_minutes,
            },
        )
        return model.to_dto()

    def update_hours(
        self,
        session_id: UUID,
        caller_id: str,
        organization_id: str | None = None,
    ) -> SessionHoursReport:
        """Recompute and persist hours; the worker or their manager may call it."""
        model = self._load(session_id, organization_id, caller_id, "update overtime hours")
        if caller_id not in (model.user_id, model.manager_id):
            raise PermissionDeniedError(
                caller_id, "update overtime hours", "only the worker or their manager",
            )
        outcome = self._monitor.refresh(model)
        return SessionHoursReport(
            session_id=model.id,
            hours_used=outcome.usage.hours_used,
            hours_remaining=outcome.usage.hours_remaining,
            percent_used=outcome.usage.percent_used,
        )

    def end(
        self,
        session_id: UUID,
        caller_id: str,
        organization_id: str | None = None,
    ) -> SessionEndReport:
        """Worker clocks out of overtime."""
        model = self._load(session_id, organization_id, caller_id, "end overtime session")
        if model.user_id != caller_id:
            raise PermissionDeniedError(
                caller_id, "end overtime session", "only the worker can end their session",
            )
        usage = self._monitor.complete(model)
        return SessionEndReport(
            session_id=model.id,
            final_hours_used=usage.hours_used,
            exceeded_by=usage.exceeded_by,
            flagged_for_review=model.flagged_for_review,
        )

    def get_active(self, organization_id: str, user_id: str) -> LiveSessionView | None:
        """The worker's running session with hours as of now; nothing is written."""
        dto = self._selector.active_for_user(organization_id, user_id)
        if dto is None:
            return None
        usage = usage_at(dto.approved_hours, dto.session_start_time, self.clock.now())
        return LiveSessionView(
            session=replace(
                dto,
                hours_used=usage.hours_used,
                hours_remaining=usage.hours_remaining,
            ),
            percent_used=usage.percent_used,
        )

    def get(self, session_id: UUID) -> OvertimeSession:
        dto = self._selector.get(session_id)
        if dto is None:
            raise OvertimeSessionNotFoundError(str(session_id))
        return dto

    def history(
        self, organization_id: str, overtime_request_id: UUID, caller_id: str,
    ) -> list[OvertimeSession]:
        """Every session run against a request, oldest first."""
        request = self.session.get(OvertimeRequestModel, overtime_request_id)
        if request is None:
            raise OvertimeRequestNotFoundError(str(overtime_request_id))
        if request.organization_id != organization_id:
            raise PermissionDeniedError(
                caller_id, "list overtime sessions", "request belongs to another organization",
            )
        return self._selector.list_for_request(overtime_request_id)

    def _load(
        self,
        session_id: UUID,
        organization_id: str | None,
        caller_id: str,
        action: str,
    ) -> OvertimeSessionModel:
        model = self.session.get(OvertimeSessionModel, session_id)
        if model is None:
            raise OvertimeSessionNotFoundError(str(session_id))
        if organization_id is not None and model.organization_id != organization_id:
            raise PermissionDeniedError(
                caller_id, action, "session belongs to another organization",
            )
        return model
