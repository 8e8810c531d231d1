"""
Module: overtime_kernel.models.overtime_settings
Responsibility: Per-organization overrides of the overtime policy.
Architecture position: Kernel > Models.  May import from db/ only.

A missing row, or a NULL/zero column, means "use the configured default"
(see PolicyResolver).
"""

from decimal import Decimal

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from overtime_kernel.db.base import TrackedBase


class OvertimeSettingsModel(TrackedBase):
    __tablename__ = "overtime_settings"

    __table_args__ = (
        UniqueConstraint("organization_id", name="uq_overtime_settings_org"),
    )

    organization_id: Mapped[str] = mapped_column(String(128), nullable=False)
    daily_max_overtime_hours: Mapped[Decimal | None] = mapped_column(nullable=True)
    grace_period_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<OvertimeSettings org={self.organization_id} "
            f"daily_max={self.daily_max_overtime_hours} grace={self.grace_period_minutes}>"
        )
