"""
OvertimeApi -- the external interface of the overtime core.

Contract:
    One method per public operation.  Every call:
      * runs in its own session and transaction (commit on success,
        rollback on any failure);
      * binds correlation/organization/actor/operation into LogContext;
      * turns any ``OvertimeKernelError`` into
        ``OperationResult(success=False, error_code=..., message=...)``.
    Anything else is a bug: it is logged and re-raised.

    Caller identity and organization come from ``CallerContext``; they are
    never taken from the payload.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from overtime_config.schema import OvertimeConfig
from overtime_kernel.domain.clock import Clock, SystemClock
from overtime_kernel.domain.overtime import LiveSessionView, OvertimeSession
from overtime_kernel.exceptions import OvertimeKernelError, ValidationError
from overtime_kernel.logging_config import LogContext, get_logger
from overtime_kernel.services.notification_service import PushGateway

from overtime_services.wiring import AuthorizerFactory, OvertimeServices, build_services

logger = get_logger("api")


@dataclass(frozen=True)
class CallerContext:
    """Authenticated caller; supplied by the transport layer."""

    user_id: str
    organization_id: str
    correlation_id: str | None = None


@dataclass(frozen=True)
class OperationResult:
    success: bool
    data: Any = None
    error_code: str | None = None
    message: str | None = None

    @classmethod
    def ok(cls, data: Any) -> OperationResult:
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: OvertimeKernelError) -> OperationResult:
        return cls(success=False, error_code=error.code, message=str(error))


def _uuid(value: Any, field: str) -> UUID:
    if isinstance(value, UUID):
        return value
    if not value:
        raise ValidationError(f"{field} is required", field)
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(f"{field} is not a valid id: {value!r}", field)


def _num(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _session_payload(s: OvertimeSession) -> dict[str, Any]:
    return {
        "session_id": str(s.session_id),
        "organization_id": s.organization_id,
        "overtime_request_id": str(s.overtime_request_id),
        "user_id": s.user_id,
        "user_name": s.user_name,
        "manager_id": s.manager_id,
        "timecard_entry_id": str(s.timecard_entry_id),
        "session_start_time": s.session_start_time.isoformat(),
        "status": s.status.value,
        "approved_hours": _num(s.approved_hours),
        "hours_used": _num(s.hours_used),
        "hours_remaining": _num(s.hours_remaining),
        "daily_max_hours": _num(s.daily_max_hours),
        "session_max_hours": _num(s.session_max_hours),
        "grace_period_minutes": s.grace_period_minutes,
        "flagged_for_review": s.flagged_for_review,
        "session_end_time": _iso(s.session_end_time),
        "exceeded_by": _num(s.exceeded_by),
        "end_reason": s.end_reason.value if s.end_reason else None,
        "manager_notified_at": _iso(s.manager_notified_at),
        "auto_clock_out_warning_at": _iso(s.auto_clock_out_warning_at),
    }


def _live_session_payload(view: LiveSessionView) -> dict[str, Any]:
    payload = _session_payload(view.session)
    payload["percent_used"] = _num(view.percent_used)
    return payload


class OvertimeApi:
    """Transaction-per-call facade over the overtime kernel services."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock | None = None,
        config: OvertimeConfig | None = None,
        push_gateway: PushGateway | None = None,
        authorizer_factory: AuthorizerFactory | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._config = config or OvertimeConfig()
        self._push_gateway = push_gateway
        self._authorizer_factory = authorizer_factory

    # ------------------------------------------------------------------
    # Request workflow
    # ------------------------------------------------------------------

    def create_overtime_request(
        self,
        caller: CallerContext,
        request_type: str,
        recipient_id: str,
        manager_id: str,
        employee_id: str,
        reason: str,
        estimated_hours=None,
        requested_date=None,
        project_id: str | None = None,
        recipient_name: str | None = None,
    ) -> OperationResult:
        def op(svc: OvertimeServices) -> dict[str, Any]:
            request = svc.requests.create(
                organization_id=caller.organization_id,
                requester_id=caller.user_id,
                request_type=request_type,
                recipient_id=recipient_id,
                manager_id=manager_id,
                employee_id=employee_id,
                reason=reason,
                estimated_hours=estimated_hours,
                requested_date=requested_date,
                project_id=project_id,
                recipient_name=recipient_name,
            )
            return {"request_id": str(request.request_id)}

        return self._run(caller, "create_overtime_request", op)

    def respond_to_overtime_request(
        self,
        caller: CallerContext,
        request_id,
        response: str,
        response_reason: str | None = None,
    ) -> OperationResult:
        def op(svc: OvertimeServices) -> dict[str, Any]:
            request = svc.requests.respond(
                _uuid(request_id, "request_id"),
                caller.user_id,
                response,
                response_reason,
                organization_id=caller.organization_id,
            )
            return {"request_id": str(request.request_id), "response": request.response.value}

        return self._run(caller, "respond_to_overtime_request", op, request_id=request_id)

    def certify_overtime_request(
        self,
        caller: CallerContext,
        request_id,
        certification_notes: str | None = None,
    ) -> OperationResult:
        def op(svc: OvertimeServices) -> dict[str, Any]:
            request = svc.requests.certify(
                _uuid(request_id, "request_id"),
                caller.user_id,
                certification_notes,
                organization_id=caller.organization_id,
            )
            return {"request_id": str(request.request_id)}

        return self._run(caller, "certify_overtime_request", op, request_id=request_id)

    def approve_overtime_request(
        self,
        caller: CallerContext,
        request_id,
        exec_notes: str | None = None,
    ) -> OperationResult:
        def op(svc: OvertimeServices) -> dict[str, Any]:
            request = svc.requests.approve(
                _uuid(request_id, "request_id"),
                caller.user_id,
                exec_notes,
                organization_id=caller.organization_id,
            )
            return {"request_id": str(request.request_id)}

        return self._run(caller, "approve_overtime_request", op, request_id=request_id)

    def reject_overtime_request(
        self,
        caller: CallerContext,
        request_id,
        rejection_reason: str | None,
    ) -> OperationResult:
        def op(svc: OvertimeServices) -> dict[str, Any]:
            request = svc.requests.reject(
                _uuid(request_id, "request_id"),
                caller.user_id,
                rejection_reason,
                organization_id=caller.organization_id,
            )
            return {"request_id": str(request.request_id)}

        return self._run(caller, "reject_overtime_request", op, request_id=request_id)

    # ------------------------------------------------------------------
    # Session tracker
    # ------------------------------------------------------------------

    def start_overtime_session(
        self,
        caller: CallerContext,
        overtime_request_id,
        timecard_entry_id,
    ) -> OperationResult:
        def op(svc: OvertimeServices) -> dict[str, Any]:
            session = svc.sessions.start(
                caller.organization_id,
                _uuid(overtime_request_id, "overtime_request_id"),
                _uuid(timecard_entry_id, "timecard_entry_id"),
                caller.user_id,
            )
            return {
                "session_id": str(session.session_id),
                "approved_hours": _num(session.approved_hours),
                "hours_used": _num(session.hours_used),
                "hours_remaining": _num(session.hours_remaining),
            }

        return self._run(
            caller, "start_overtime_session", op, request_id=overtime_request_id,
        )

    def update_overtime_session_hours(
        self, caller: CallerContext, session_id,
    ) -> OperationResult:
        def op(svc: OvertimeServices) -> dict[str, Any]:
            report = svc.sessions.update_hours(
                _uuid(session_id, "session_id"),
                caller.user_id,
                organization_id=caller.organization_id,
            )
            return {
                "session_id": str(report.session_id),
                "hours_used": _num(report.hours_used),
                "hours_remaining": _num(report.hours_remaining),
                "percent_used": _num(report.percent_used),
            }

        return self._run(caller, "update_overtime_session_hours", op, session_id=session_id)

    def end_overtime_session(self, caller: CallerContext, session_id) -> OperationResult:
        def op(svc: OvertimeServices) -> dict[str, Any]:
            report = svc.sessions.end(
                _uuid(session_id, "session_id"),
                caller.user_id,
                organization_id=caller.organization_id,
            )
            return {
                "session_id": str(report.session_id),
                "final_hours_used": _num(report.final_hours_used),
                "exceeded_by": _num(report.exceeded_by),
                "flagged_for_review": report.flagged_for_review,
            }

        return self._run(caller, "end_overtime_session", op, session_id=session_id)

    def get_active_overtime_session(
        self, caller: CallerContext, user_id: str | None = None,
    ) -> OperationResult:
        def op(svc: OvertimeServices) -> dict[str, Any] | None:
            view = svc.sessions.get_active(caller.organization_id, user_id or caller.user_id)
            return _live_session_payload(view) if view is not None else None

        return self._run(caller, "get_active_overtime_session", op)

    def list_overtime_sessions(
        self, caller: CallerContext, overtime_request_id,
    ) -> OperationResult:
        def op(svc: OvertimeServices) -> list[dict[str, Any]]:
            sessions = svc.sessions.history(
                caller.organization_id,
                _uuid(overtime_request_id, "overtime_request_id"),
                caller.user_id,
            )
            return [_session_payload(s) for s in sessions]

        return self._run(
            caller, "list_overtime_sessions", op, request_id=overtime_request_id,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _run(
        self,
        caller: CallerContext,
        operation: str,
        fn: Callable[[OvertimeServices], Any],
        request_id: Any = None,
        session_id: Any = None,
    ) -> OperationResult:
        with LogContext.bind(
            correlation_id=caller.correlation_id or uuid4(),
            organization_id=caller.organization_id,
            actor_id=caller.user_id,
            operation=operation,
            request_id=request_id,
            session_id=session_id,
        ):
            session = self._session_factory()
            try:
                services = build_services(
                    session,
                    self._clock,
                    self._config,
                    push_gateway=self._push_gateway,
                    authorizer_factory=self._authorizer_factory,
                )
                data = fn(services)
                session.commit()
            except OvertimeKernelError as exc:
                session.rollback()
                logger.info(
                    "operation_refused",
                    extra={"error_code": exc.code, "error_message": str(exc)},
                )
                return OperationResult.failure(exc)
            except Exception:
                session.rollback()
                logger.exception("operation_failed")
                raise
            finally:
                session.close()

            logger.debug("operation_succeeded")
            return OperationResult.ok(data)
