"""
Module: overtime_kernel.models.overtime_session
Responsibility: ORM persistence for live overtime monitoring sessions.

Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - At most one ACTIVE session per (organization_id, user_id): partial
      unique index ``uq_overtime_sessions_one_active``.
    - ``approved_hours`` and the policy snapshot columns are copied at start
      and never rewritten by the services.
    - ``manager_notified_at`` / ``auto_clock_out_warning_at`` are once-only
      latches; ``version`` makes the latch write a compare-and-set.
    - Sessions are never deleted.

Failure modes:
    - IntegrityError on a second ACTIVE session for the same worker.
    - StaleDataError on a concurrent modification.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    event,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from overtime_kernel.db.base import TrackedBase
from overtime_kernel.db.types import UTCDateTime, UUIDString
from overtime_kernel.domain.overtime import (
    OvertimeSession,
    OvertimeSessionStatus,
    SessionEndReason,
)


class OvertimeSessionModel(TrackedBase):
    """Persistent overtime session (one monitoring window)."""

    __tablename__ = "overtime_sessions"

    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'COMPLETED', 'AUTO_CLOCKED_OUT')",
            name="ck_overtime_sessions_valid_status",
        ),
        Index(
            "uq_overtime_sessions_one_active",
            "organization_id", "user_id",
            unique=True,
            sqlite_where=text("status = 'ACTIVE'"),
            postgresql_where=text("status = 'ACTIVE'"),
        ),
        Index("ix_overtime_sessions_status", "status"),
        Index("ix_overtime_sessions_request", "overtime_request_id", "status"),
        Index(
            "ix_overtime_sessions_user_day",
            "organization_id", "user_id", "session_start_time",
        ),
    )

    organization_id: Mapped[str] = mapped_column(String(128), nullable=False)
    overtime_request_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("overtime_requests.id"), nullable=False,
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    manager_id: Mapped[str] = mapped_column(String(128), nullable=False)
    timecard_entry_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    session_start_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    session_end_time: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    approved_hours: Mapped[Decimal] = mapped_column(nullable=False)
    hours_used: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    hours_remaining: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=OvertimeSessionStatus.ACTIVE.value,
    )

    # Policy snapshot at start
    daily_max_hours: Mapped[Decimal] = mapped_column(nullable=False)
    session_max_hours: Mapped[Decimal] = mapped_column(nullable=False)
    grace_period_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    flagged_for_review: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    exceeded_by: Mapped[Decimal | None] = mapped_column(nullable=True)
    end_reason: Mapped[str | None] = mapped_column(String(32), nullable=True)

    manager_notified_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    auto_clock_out_warning_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<OvertimeSession {self.id} user={self.user_id} "
            f"status={self.status} used={self.hours_used}/{self.approved_hours}>"
        )

    @property
    def is_active(self) -> bool:
        return self.status == OvertimeSessionStatus.ACTIVE.value

    def to_dto(self) -> OvertimeSession:
        """Convert ORM model to frozen domain DTO."""
        return OvertimeSession(
            session_id=self.id,
            organization_id=self.organization_id,
            overtime_request_id=self.overtime_request_id,
            user_id=self.user_id,
            user_name=self.user_name,
            manager_id=self.manager_id,
            timecard_entry_id=self.timecard_entry_id,
            session_start_time=self.session_start_time,
            session_end_time=self.session_end_time,
            approved_hours=self.approved_hours,
            hours_used=self.hours_used,
            hours_remaining=self.hours_remaining,
            status=OvertimeSessionStatus(self.status),
            daily_max_hours=self.daily_max_hours,
            session_max_hours=self.session_max_hours,
            grace_period_minutes=self.grace_period_minutes,
            flagged_for_review=self.flagged_for_review,
            exceeded_by=self.exceeded_by,
            end_reason=SessionEndReason(self.end_reason) if self.end_reason else None,
            manager_notified_at=self.manager_notified_at,
            auto_clock_out_warning_at=self.auto_clock_out_warning_at,
            version=self.version,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


# =============================================================================
# ORM-level guard: sessions are history, never deleted
# =============================================================================


@event.listens_for(OvertimeSessionModel, "before_delete")
def prevent_session_delete(mapper, connection, target):
    from overtime_kernel.exceptions import InvariantViolationError

    raise InvariantViolationError(
        "session_retention",
        f"Overtime session {target.id} cannot be deleted",
    )
