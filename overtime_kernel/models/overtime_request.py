"""
Module: overtime_kernel.models.overtime_request
Responsibility: ORM persistence for overtime requests.

Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - Status values limited by a check constraint; transition rules live in
      the service layer (REQUEST_TRANSITIONS).
    - ``version`` is the optimistic-lock column: every UPDATE is
      ``WHERE id = :id AND version = :expected``.
    - ``hours_remaining = max(0, approved_hours - hours_used)`` after approval
      (maintained by the services, never written independently).

Failure modes:
    - StaleDataError on a concurrent modification (translated to
      OptimisticLockError by the services).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Date, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from overtime_kernel.db.base import TrackedBase
from overtime_kernel.db.types import UTCDateTime, UUIDString
from overtime_kernel.domain.overtime import (
    OvertimeRequest,
    OvertimeRequestStatus,
    OvertimeRequestType,
    OvertimeResponse,
)


class OvertimeRequestModel(TrackedBase):
    """Persistent overtime request (one authorization lifecycle)."""

    __tablename__ = "overtime_requests"

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'RESPONDED', 'CERTIFIED', "
            "'PENDING_EXEC_APPROVAL', 'APPROVED', 'REJECTED')",
            name="ck_overtime_requests_valid_status",
        ),
        CheckConstraint(
            "request_type IN ('STANDARD_REQUEST', 'MANAGER_INQUIRY')",
            name="ck_overtime_requests_valid_type",
        ),
        CheckConstraint(
            "hours_used >= 0",
            name="ck_overtime_requests_hours_used_non_negative",
        ),
        Index("ix_overtime_requests_org_status", "organization_id", "status"),
        Index("ix_overtime_requests_employee", "organization_id", "employee_id"),
    )

    organization_id: Mapped[str] = mapped_column(String(128), nullable=False)
    project_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    request_type: Mapped[str] = mapped_column(String(32), nullable=False)

    requester_id: Mapped[str] = mapped_column(String(128), nullable=False)
    requester_name: Mapped[str] = mapped_column(String(255), nullable=False)
    recipient_id: Mapped[str] = mapped_column(String(128), nullable=False)
    recipient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    employee_id: Mapped[str] = mapped_column(String(128), nullable=False)
    manager_id: Mapped[str] = mapped_column(String(128), nullable=False)

    reason: Mapped[str] = mapped_column(Text, nullable=False)
    estimated_hours: Mapped[Decimal | None] = mapped_column(nullable=True)
    requested_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=OvertimeRequestStatus.PENDING.value,
    )

    response: Mapped[str | None] = mapped_column(String(16), nullable=True)
    response_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    certified_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    certified_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    certification_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    exec_approver_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    exec_decided_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    exec_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    approved_hours: Mapped[Decimal | None] = mapped_column(nullable=True)
    hours_used: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    hours_remaining: Mapped[Decimal | None] = mapped_column(nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Back-reference to the running session, not ownership
    active_session_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<OvertimeRequest {self.id} employee={self.employee_id} "
            f"status={self.status} v{self.version}>"
        )

    @property
    def status_enum(self) -> OvertimeRequestStatus:
        return OvertimeRequestStatus(self.status)

    def to_dto(self) -> OvertimeRequest:
        """Convert ORM model to frozen domain DTO."""
        return OvertimeRequest(
            request_id=self.id,
            organization_id=self.organization_id,
            project_id=self.project_id,
            request_type=OvertimeRequestType(self.request_type),
            requester_id=self.requester_id,
            requester_name=self.requester_name,
            recipient_id=self.recipient_id,
            recipient_name=self.recipient_name,
            employee_id=self.employee_id,
            manager_id=self.manager_id,
            reason=self.reason,
            estimated_hours=self.estimated_hours,
            requested_date=self.requested_date,
            status=OvertimeRequestStatus(self.status),
            response=OvertimeResponse(self.response) if self.response else None,
            response_reason=self.response_reason,
            responded_at=self.responded_at,
            certified_by=self.certified_by,
            certified_at=self.certified_at,
            certification_notes=self.certification_notes,
            exec_approver_id=self.exec_approver_id,
            exec_decided_at=self.exec_decided_at,
            exec_notes=self.exec_notes,
            rejection_reason=self.rejection_reason,
            approved_hours=self.approved_hours,
            hours_used=self.hours_used,
            hours_remaining=self.hours_remaining,
            is_active=self.is_active,
            active_session_id=self.active_session_id,
            version=self.version,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
