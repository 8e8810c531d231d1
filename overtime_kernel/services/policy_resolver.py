"""
PolicyResolver -- effective overtime policy for an organization.

Per-organization overrides live in ``overtime_settings``; anything the
row leaves unset (missing row, NULL or zero) falls back to the configured
defaults.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from overtime_kernel.domain.overtime import OvertimePolicy
from overtime_kernel.models.overtime_settings import OvertimeSettingsModel


class PolicyResolver:
    def __init__(self, session: Session, defaults: OvertimePolicy | None = None) -> None:
        self._session = session
        self._defaults = defaults or OvertimePolicy()

    @property
    def defaults(self) -> OvertimePolicy:
        return self._defaults

    def resolve(self, organization_id: str) -> OvertimePolicy:
        row = self._session.scalars(
            select(OvertimeSettingsModel).where(
                OvertimeSettingsModel.organization_id == organization_id,
            )
        ).first()
        if row is None:
            return self._defaults

        daily_max = self._defaults.daily_max_hours
        if row.daily_max_overtime_hours:
            daily_max = Decimal(str(row.daily_max_overtime_hours))
        grace = self._defaults.grace_period_minutes
        if row.grace_period_minutes:
            grace = int(row.grace_period_minutes)
        return OvertimePolicy(daily_max_hours=daily_max, grace_period_minutes=grace)
