"""
overtime_kernel.services.overtime_request_service -- Overtime approval chain.

Responsibility:
    Drives an overtime request through
    ``PENDING -> RESPONDED -> CERTIFIED -> (PENDING_EXEC_APPROVAL) -> APPROVED | REJECTED``
    and notifies the participants at every step.

Architecture position:
    Kernel > Services.  May import from domain/, models/, selectors/, db/.

Invariants enforced:
    - Every transition is looked up in ``ACTION_TRANSITIONS`` /
      ``REQUEST_TRANSITIONS``; anything else raises a StateError and the
      row is left untouched (all guards run before the first mutation).
    - Only the recipient responds, only the manager certifies, only an
      executive (per the injected Authorizer) approves or rejects.
    - A request with a running session cannot be rejected.
    - Writes are version-checked; a concurrent writer yields
      OptimisticLockError.

Failure modes:
    - ValidationError / MissingFieldError on bad input.
    - PermissionDeniedError when the caller is not the required actor.
    - OvertimeRequestNotFoundError when the ID does not resolve.
    - InvalidRequestTransitionError on a status precondition (including a
      second submission of the same step).
    - InvariantViolationError when rejecting a request with an active session.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from overtime_kernel.domain import notification as notices
from overtime_kernel.domain.authority import Authorizer
from overtime_kernel.domain.clock import Clock
from overtime_kernel.domain.overtime import (
    OvertimeRequest,
    OvertimeRequestStatus,
    OvertimeRequestType,
    OvertimeResponse,
    RequestAction,
    target_for_action,
)
from overtime_kernel.domain.usage import to_hours
from overtime_kernel.exceptions import (
    InvalidRequestTransitionError,
    InvariantViolationError,
    MissingFieldError,
    OvertimeRequestNotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from overtime_kernel.logging_config import get_logger
from overtime_kernel.models.overtime_request import OvertimeRequestModel
from overtime_kernel.selectors.request_selector import OvertimeRequestSelector
from overtime_kernel.selectors.session_selector import OvertimeSessionSelector
from overtime_kernel.services.base import BaseService
from overtime_kernel.services.notification_service import NotificationDispatcher
from overtime_kernel.services.user_directory import DirectoryAuthorizer, UserDirectory

logger = get_logger("services.overtime_request")

_ENTITY = "OvertimeRequest"


def _parse_enum(enum_cls, value, field: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field} {value!r}; expected one of {allowed}", field)


def _parse_hours(value, field: str) -> Decimal | None:
    if value is None:
        return None
    try:
        hours = to_hours(value)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number, got {value!r}", field)
    if hours <= 0:
        raise ValidationError(f"{field} must be greater than zero", field)
    return hours


def _parse_date(value, field: str) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date, got {value!r}", field)


class OvertimeRequestService(BaseService):
    """The overtime request approval workflow."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        dispatcher: NotificationDispatcher | None = None,
        directory: UserDirectory | None = None,
        authorizer: Authorizer | None = None,
    ) -> None:
        super().__init__(session, clock)
        self._dispatcher = dispatcher or NotificationDispatcher()
        self._directory = directory or UserDirectory(session)
        self._authorizer = authorizer or DirectoryAuthorizer(self._directory)
        self._requests = OvertimeRequestSelector(session)
        self._sessions = OvertimeSessionSelector(session)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(
        self,
        *,
        organization_id: str,
        requester_id: str,
        request_type: OvertimeRequestType | str,
        recipient_id: str,
        manager_id: str,
        employee_id: str,
        reason: str,
        estimated_hours=None,
        requested_date: date | str | None = None,
        project_id: str | None = None,
        recipient_name: str | None = None,
    ) -> OvertimeRequest:
        """Open a new request in PENDING and notify the recipient."""
        required = {
            "organization_id": organization_id,
            "request_type": request_type,
            "recipient_id": recipient_id,
            "manager_id": manager_id,
            "employee_id": employee_id,
            "reason": reason,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise MissingFieldError(missing)

        req_type = _parse_enum(OvertimeRequestType, request_type, "request_type")
        hours = _parse_hours(estimated_hours, "estimated_hours")
        when = _parse_date(requested_date, "requested_date")

        requester_name = self._directory.display_name(requester_id)
        now = self.clock.now()
        model = OvertimeRequestModel(
            id=uuid4(),
            organization_id=organization_id,
            project_id=project_id,
            request_type=req_type.value,
            requester_id=requester_id,
            requester_name=requester_name,
            recipient_id=recipient_id,
            recipient_name=recipient_name or self._directory.display_name(recipient_id),
            employee_id=employee_id,
            manager_id=manager_id,
            reason=reason,
            estimated_hours=hours,
            requested_date=when,
            status=OvertimeRequestStatus.PENDING.value,
            hours_used=Decimal("0"),
            is_active=False,
            created_at=now,
            updated_at=now,
        )
        self.session.add(model)
        self._flush(_ENTITY, model.id)

        logger.info(
            "overtime_request_created",
            extra={
                "request_id": str(model.id),
                "request_type": req_type.value,
                "employee_id": employee_id,
                "estimated_hours": hours,
            },
        )

        self._dispatcher.dispatch(
            notices.request_created(
                recipient_id=recipient_id,
                organization_id=organization_id,
                request_id=str(model.id),
                request_type=req_type.value,
                requester_id=requester_id,
                requester_name=requester_name,
                reason=reason,
            )
        )
        return model.to_dto()

    def respond(
        self,
        request_id: UUID,
        caller_id: str,
        response: OvertimeResponse | str,
        response_reason: str | None = None,
        organization_id: str | None = None,
    ) -> OvertimeRequest:
        """Recipient accepts or declines; PENDING -> RESPONDED."""
        model = self._load(request_id, organization_id, caller_id, "respond")
        if model.recipient_id != caller_id:
            raise PermissionDeniedError(
                caller_id, "respond", "only the recipient can respond to this request",
            )
        if not response:
            raise MissingFieldError(["response"])
        parsed = _parse_enum(OvertimeResponse, response, "response")
        target = self._require_transition(model, RequestAction.RESPOND)

        now = self.clock.now()
        model.response = parsed.value
        model.response_reason = response_reason
        model.responded_at = now
        model.status = target.value
        model.updated_at = now
        self._flush(_ENTITY, model.id)

        logger.info(
            "overtime_request_responded",
            extra={"request_id": str(model.id), "response": parsed.value},
        )

        recipient_name = model.recipient_name or self._directory.display_name(caller_id)
        self._dispatcher.dispatch(
            notices.request_responded(
                requester_id=model.requester_id,
                organization_id=model.organization_id,
                request_id=str(model.id),
                recipient_name=recipient_name,
                response=parsed.value,
            )
        )
        return model.to_dto()

    def certify(
        self,
        request_id: UUID,
        caller_id: str,
        certification_notes: str | None = None,
        organization_id: str | None = None,
    ) -> OvertimeRequest:
        """Manager certifies an accepted request; RESPONDED -> CERTIFIED."""
        model = self._load(request_id, organization_id, caller_id, "certify")
        if model.manager_id != caller_id:
            raise PermissionDeniedError(
                caller_id, "certify", "only the manager can certify this request",
            )
        target = self._require_transition(model, RequestAction.CERTIFY)
        if model.response != OvertimeResponse.ACCEPTED.value:
            raise InvalidRequestTransitionError(
                str(model.id), model.status, "certify",
                "request must be accepted before certification",
            )

        now = self.clock.now()
        model.certified_by = caller_id
        model.certified_at = now
        model.certification_notes = certification_notes
        model.status = target.value
        model.updated_at = now
        self._flush(_ENTITY, model.id)

        manager_name = self._directory.display_name(caller_id, fallback="Manager")
        executives = self.executives_of(model.organization_id)
        logger.info(
            "overtime_request_certified",
            extra={"request_id": str(model.id), "executive_count": len(executives)},
        )

        employee_label = (
            model.requester_name
            if model.employee_id == model.requester_id
            else self._directory.display_name(model.employee_id, fallback=model.employee_id)
        )
        pending = [
            notices.pending_exec_approval(
                user_id=exec_id,
                organization_id=model.organization_id,
                request_id=str(model.id),
                employee_label=employee_label,
                manager_id=caller_id,
                manager_name=manager_name,
            )
            for exec_id in executives
        ]
        pending.append(
            notices.request_certified(
                employee_id=model.employee_id,
                organization_id=model.organization_id,
                request_id=str(model.id),
                manager_name=manager_name,
            )
        )
        self._dispatcher.dispatch_all(pending)
        return model.to_dto()

    def approve(
        self,
        request_id: UUID,
        caller_id: str,
        exec_notes: str | None = None,
        organization_id: str | None = None,
    ) -> OvertimeRequest:
        """Executive approval; sets the hour budget the sessions draw from."""
        model = self._load(request_id, organization_id, caller_id, "approve")
        self._require_executive(model, caller_id, "approve")
        target = self._require_transition(model, RequestAction.APPROVE)

        now = self.clock.now()
        if model.approved_hours is not None:
            approved = model.approved_hours
        elif model.estimated_hours is not None:
            approved = model.estimated_hours
        else:
            approved = Decimal("0")
        approved = to_hours(approved)

        model.approved_hours = approved
        model.hours_used = Decimal("0")
        model.hours_remaining = approved
        model.exec_approver_id = caller_id
        model.exec_decided_at = now
        model.exec_notes = exec_notes
        model.status = target.value
        model.updated_at = now
        self._flush(_ENTITY, model.id)

        logger.info(
            "overtime_request_approved",
            extra={"request_id": str(model.id), "approved_hours": approved},
        )

        approver_name = self._directory.display_name(caller_id, fallback="Approver")
        self._dispatcher.dispatch_all(
            notices.request_decided(
                user_id=user_id,
                organization_id=model.organization_id,
                request_id=str(model.id),
                approved=True,
                decider_id=caller_id,
                decider_name=approver_name,
            )
            for user_id in self._participants(model)
        )
        return model.to_dto()

    def reject(
        self,
        request_id: UUID,
        caller_id: str,
        rejection_reason: str | None,
        organization_id: str | None = None,
    ) -> OvertimeRequest:
        """Executive rejection; a reason is mandatory."""
        if not rejection_reason or not rejection_reason.strip():
            raise MissingFieldError(["rejection_reason"])

        model = self._load(request_id, organization_id, caller_id, "reject")
        self._require_executive(model, caller_id, "reject")
        target = self._require_transition(model, RequestAction.REJECT)

        running = self._sessions.active_for_request(model.id)
        if model.is_active or running is not None:
            raise InvariantViolationError(
                "no_active_session_on_reject",
                f"overtime request {model.id} has an active session "
                f"({running.session_id if running else model.active_session_id})",
            )

        now = self.clock.now()
        model.rejection_reason = rejection_reason
        model.exec_approver_id = caller_id
        model.exec_decided_at = now
        model.status = target.value
        model.updated_at = now
        self._flush(_ENTITY, model.id)

        logger.info(
            "overtime_request_rejected",
            extra={"request_id": str(model.id)},
        )

        rejector_name = self._directory.display_name(caller_id, fallback="Rejector")
        self._dispatcher.dispatch_all(
            notices.request_decided(
                user_id=user_id,
                organization_id=model.organization_id,
                request_id=str(model.id),
                approved=False,
                decider_id=caller_id,
                decider_name=rejector_name,
                rejection_reason=rejection_reason,
            )
            for user_id in self._participants(model)
        )
        return model.to_dto()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, request_id: UUID) -> OvertimeRequest:
        request = self._requests.get(request_id)
        if request is None:
            raise OvertimeRequestNotFoundError(str(request_id))
        return request

    def list_for_employee(
        self,
        organization_id: str,
        employee_id: str,
        status: OvertimeRequestStatus | None = None,
    ) -> list[OvertimeRequest]:
        return self._requests.list_for_employee(organization_id, employee_id, status)

    def awaiting_decision(self, organization_id: str) -> list[OvertimeRequest]:
        """Certified requests an executive still has to approve or reject."""
        return [
            request
            for status in (
                OvertimeRequestStatus.CERTIFIED,
                OvertimeRequestStatus.PENDING_EXEC_APPROVAL,
            )
            for request in self._requests.list_by_status(organization_id, status)
        ]

    def executives_of(self, organization_id: str) -> list[str]:
        return [
            user_id
            for user_id in self._directory.member_ids(organization_id)
            if self._authorizer.is_executive(organization_id, user_id)
        ]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load(
        self,
        request_id: UUID,
        organization_id: str | None,
        caller_id: str,
        action: str,
    ) -> OvertimeRequestModel:
        model = self.session.get(OvertimeRequestModel, request_id)
        if model is None:
            raise OvertimeRequestNotFoundError(str(request_id))
        if organization_id is not None and model.organization_id != organization_id:
            raise PermissionDeniedError(
                caller_id, action, "request belongs to another organization",
            )
        return model

    def _require_transition(
        self, model: OvertimeRequestModel, action: RequestAction,
    ) -> OvertimeRequestStatus:
        target = target_for_action(model.status_enum, action)
        if target is None:
            logger.info(
                "overtime_request_transition_refused",
                extra={
                    "request_id": str(model.id),
                    "current_status": model.status,
                    "action": action.value,
                },
            )
            raise InvalidRequestTransitionError(str(model.id), model.status, action.value)
        return target

    def _require_executive(
        self, model: OvertimeRequestModel, caller_id: str, action: str,
    ) -> None:
        if not self._authorizer.is_executive(model.organization_id, caller_id):
            raise PermissionDeniedError(
                caller_id, action, "executive or accounting role required",
            )

    @staticmethod
    def _participants(model: OvertimeRequestModel) -> list[str]:
        """Employee, manager, requester; each once, in that order."""
        return list(dict.fromkeys(
            uid for uid in (model.employee_id, model.manager_id, model.requester_id) if uid
        ))
