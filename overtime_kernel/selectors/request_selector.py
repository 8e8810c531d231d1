"""
Module: overtime_kernel.selectors.request_selector
Responsibility: Read-only queries over overtime requests.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select

from overtime_kernel.domain.overtime import OvertimeRequest, OvertimeRequestStatus
from overtime_kernel.models.overtime_request import OvertimeRequestModel
from overtime_kernel.selectors.base import BaseSelector


class OvertimeRequestSelector(BaseSelector[OvertimeRequestModel]):
    """Queries over the overtime_requests table."""

    def get(self, request_id: UUID) -> OvertimeRequest | None:
        model = self.session.get(OvertimeRequestModel, request_id)
        return model.to_dto() if model is not None else None

    def list_for_employee(
        self,
        organization_id: str,
        employee_id: str,
        status: OvertimeRequestStatus | None = None,
    ) -> list[OvertimeRequest]:
        """Requests for one worker, newest first."""
        stmt = select(OvertimeRequestModel).where(
            OvertimeRequestModel.organization_id == organization_id,
            OvertimeRequestModel.employee_id == employee_id,
        )
        if status is not None:
            stmt = stmt.where(OvertimeRequestModel.status == status.value)
        stmt = stmt.order_by(OvertimeRequestModel.created_at.desc())
        return [m.to_dto() for m in self.session.scalars(stmt)]

    def list_by_status(
        self, organization_id: str, status: OvertimeRequestStatus,
    ) -> list[OvertimeRequest]:
        stmt = (
            select(OvertimeRequestModel)
            .where(
                OvertimeRequestModel.organization_id == organization_id,
                OvertimeRequestModel.status == status.value,
            )
            .order_by(OvertimeRequestModel.created_at)
        )
        return [m.to_dto() for m in self.session.scalars(stmt)]
