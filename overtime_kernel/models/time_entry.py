"""
Module: overtime_kernel.models.time_entry
Responsibility: ORM persistence for worker clock-in/clock-out records (the
    time-entry ledger).  The overtime core reads these rows and writes only
    its summary fields back onto them.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - An entry is "open" while clock_out_time is NULL.
    - Overtime summary fields (overtime_*, auto_clock_out*) are written by
      the overtime services; clock-in data is owned by the ledger.

Failure modes:
    - None at the ORM level.  A missing ledger row is a data-quality issue
      the services log and tolerate.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from overtime_kernel.db.base import TrackedBase
from overtime_kernel.db.types import UTCDateTime, UUIDString


class TimeEntryModel(TrackedBase):
    """One clock-in (and eventually clock-out) by one worker."""

    __tablename__ = "time_entries"

    __table_args__ = (
        Index("ix_time_entries_user_clock_in", "organization_id", "user_id", "clock_in_time"),
    )

    organization_id: Mapped[str] = mapped_column(String(128), nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    clock_in_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    clock_out_time: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    total_hours: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Written by the overtime core
    is_overtime_session: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    overtime_session_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    overtime_request_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    overtime_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    overtime_hours_worked: Mapped[Decimal | None] = mapped_column(nullable=True)
    auto_clock_out: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    auto_clock_out_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def is_open(self) -> bool:
        return self.clock_out_time is None

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"<TimeEntry {self.id} user={self.user_id} {state}>"
