"""
Module: overtime_kernel.selectors.session_selector
Responsibility: Read-only queries over overtime sessions: the active
    session lookups behind the start() guards, the daily-cap sum, and the
    scheduler's scan of ACTIVE sessions.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - The daily cap counts ACTIVE and COMPLETED sessions only; sessions that
      were force-closed do not consume the day's allowance.
    - "Today" is a half-open range [day_start, day_end) on
      session_start_time, supplied by the caller.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from overtime_kernel.domain.overtime import OvertimeSession, OvertimeSessionStatus
from overtime_kernel.models.overtime_session import OvertimeSessionModel
from overtime_kernel.selectors.base import BaseSelector

_COUNTED_FOR_DAILY_CAP = (
    OvertimeSessionStatus.ACTIVE.value,
    OvertimeSessionStatus.COMPLETED.value,
)


class OvertimeSessionSelector(BaseSelector[OvertimeSessionModel]):
    """Queries over the overtime_sessions table."""

    def get(self, session_id: UUID) -> OvertimeSession | None:
        model = self.session.get(OvertimeSessionModel, session_id)
        return model.to_dto() if model is not None else None

    def active_for_user(self, organization_id: str, user_id: str) -> OvertimeSession | None:
        stmt = (
            select(OvertimeSessionModel)
            .where(
                OvertimeSessionModel.organization_id == organization_id,
                OvertimeSessionModel.user_id == user_id,
                OvertimeSessionModel.status == OvertimeSessionStatus.ACTIVE.value,
            )
            .order_by(OvertimeSessionModel.session_start_time.desc())
            .limit(1)
        )
        model = self.session.scalars(stmt).first()
        return model.to_dto() if model is not None else None

    def active_for_request(self, overtime_request_id: UUID) -> OvertimeSession | None:
        stmt = (
            select(OvertimeSessionModel)
            .where(
                OvertimeSessionModel.overtime_request_id == overtime_request_id,
                OvertimeSessionModel.status == OvertimeSessionStatus.ACTIVE.value,
            )
            .limit(1)
        )
        model = self.session.scalars(stmt).first()
        return model.to_dto() if model is not None else None

    def approved_hours_started_between(
        self,
        organization_id: str,
        user_id: str,
        day_start: datetime,
        day_end: datetime,
    ) -> Decimal:
        """Sum of approved_hours over the user's counted sessions in the range."""
        stmt = select(
            func.coalesce(func.sum(OvertimeSessionModel.approved_hours), 0)
        ).where(
            OvertimeSessionModel.organization_id == organization_id,
            OvertimeSessionModel.user_id == user_id,
            OvertimeSessionModel.status.in_(_COUNTED_FOR_DAILY_CAP),
            OvertimeSessionModel.session_start_time >= day_start,
            OvertimeSessionModel.session_start_time < day_end,
        )
        total = self.session.scalar(stmt)
        return Decimal(str(total or 0))

    def active_session_ids(self) -> list[UUID]:
        """IDs of every ACTIVE session, oldest first."""
        stmt = (
            select(OvertimeSessionModel.id)
            .where(OvertimeSessionModel.status == OvertimeSessionStatus.ACTIVE.value)
            .order_by(OvertimeSessionModel.session_start_time)
        )
        return list(self.session.scalars(stmt))

    def list_for_request(self, overtime_request_id: UUID) -> list[OvertimeSession]:
        stmt = (
            select(OvertimeSessionModel)
            .where(OvertimeSessionModel.overtime_request_id == overtime_request_id)
            .order_by(OvertimeSessionModel.session_start_time)
        )
        return [m.to_dto() for m in self.session.scalars(stmt)]
