"""
TimeEntryLedger -- the overtime core's view of the clock-in/out ledger.

Responsibility:
    Validates the clock-in a session is started against, stamps the
    session back-reference onto it, writes the terminal overtime status
    when a session ends, and closes the worker's open entry on auto
    clock-out.

Failure modes:
    - TimeEntryNotFoundError / PermissionDeniedError from
      ``require_for_user`` (start path only).
    - Every other method treats a missing entry as a reconciliation gap:
      it logs ``time_entry_not_found`` and returns without raising, so
      session and request state still close.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from overtime_kernel.domain.clock import Clock, SystemClock
from overtime_kernel.domain.overtime import TimeEntryOvertimeStatus
from overtime_kernel.domain.usage import elapsed_hours, to_hours
from overtime_kernel.exceptions import PermissionDeniedError, TimeEntryNotFoundError
from overtime_kernel.logging_config import get_logger
from overtime_kernel.models.time_entry import TimeEntryModel

logger = get_logger("services.time_entry_ledger")

AUTO_CLOCK_OUT_REASON = "Overtime limit exceeded"


class TimeEntryLedger:
    def __init__(self, session: Session, clock: Clock | None = None) -> None:
        self._session = session
        self._clock = clock or SystemClock()

    def get(self, entry_id: UUID) -> TimeEntryModel | None:
        return self._session.get(TimeEntryModel, entry_id)

    def require_for_user(
        self, entry_id: UUID, organization_id: str, user_id: str,
    ) -> TimeEntryModel:
        """Load the entry a session will be tied to; it must be the caller's."""
        entry = self.get(entry_id)
        if entry is None:
            raise TimeEntryNotFoundError(str(entry_id))
        if entry.user_id != user_id or entry.organization_id != organization_id:
            raise PermissionDeniedError(
                user_id, "start overtime session",
                f"time entry {entry_id} belongs to another worker",
            )
        return entry

    def stamp_session_start(
        self, entry: TimeEntryModel, session_id: UUID, request_id: UUID,
    ) -> None:
        entry.is_overtime_session = True
        entry.overtime_session_id = session_id
        entry.overtime_request_id = request_id
        entry.overtime_status = TimeEntryOvertimeStatus.ACTIVE.value
        entry.updated_at = self._clock.now()

    def record_session_end(
        self,
        entry_id: UUID,
        status: TimeEntryOvertimeStatus,
        hours_worked: Decimal,
        session_id: UUID | None = None,
    ) -> bool:
        """Write the terminal overtime status onto the entry. False if it is gone."""
        entry = self.get(entry_id)
        if entry is None:
            logger.warning(
                "time_entry_not_found",
                extra={"entry_id": str(entry_id), "overtime_session_id": str(session_id)},
            )
            return False
        entry.overtime_status = status.value
        entry.overtime_hours_worked = hours_worked
        entry.updated_at = self._clock.now()
        return True

    def find_latest_open(self, organization_id: str, user_id: str) -> TimeEntryModel | None:
        """The user's most recent entry without a clock-out time."""
        stmt = (
            select(TimeEntryModel)
            .where(
                TimeEntryModel.organization_id == organization_id,
                TimeEntryModel.user_id == user_id,
                TimeEntryModel.clock_out_time.is_(None),
            )
            .order_by(TimeEntryModel.clock_in_time.desc())
            .limit(1)
        )
        return self._session.scalars(stmt).first()

    def close_with_totals(
        self,
        entry: TimeEntryModel,
        clock_out_time: datetime,
        status: TimeEntryOvertimeStatus = TimeEntryOvertimeStatus.AUTO_CLOCKED_OUT,
        reason: str = AUTO_CLOCK_OUT_REASON,
    ) -> Decimal:
        """Clock the entry out at ``clock_out_time``; returns its total hours."""
        total = to_hours(elapsed_hours(entry.clock_in_time, clock_out_time))
        entry.clock_out_time = clock_out_time
        entry.total_hours = total
        entry.overtime_status = status.value
        entry.auto_clock_out = True
        entry.auto_clock_out_reason = reason
        entry.updated_at = clock_out_time
        return total

    def auto_clock_out_user(
        self, organization_id: str, user_id: str, session_id: UUID | None = None,
    ) -> TimeEntryModel | None:
        """Close the user's open entry now; logs and returns None when there is none."""
        entry = self.find_latest_open(organization_id, user_id)
        if entry is None:
            logger.warning(
                "time_entry_not_found",
                extra={
                    "user_id": user_id,
                    "overtime_session_id": str(session_id),
                    "reason": "no open time entry to auto clock out",
                },
            )
            return None
        total = self.close_with_totals(entry, self._clock.now())
        logger.info(
            "time_entry_auto_clocked_out",
            extra={"entry_id": str(entry.id), "user_id": user_id, "total_hours": total},
        )
        return entry
