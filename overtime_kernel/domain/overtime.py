"""
Overtime domain types (``overtime_kernel.domain.overtime``).

Responsibility
--------------
Pure value objects for the overtime approval chain and live sessions.
Defines the request lifecycle state machine, the session lifecycle,
organization policy snapshots and the frozen DTOs that services return.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Request lifecycle: ``REQUEST_TRANSITIONS`` defines the only valid
  status transitions.  APPROVED and REJECTED have no outgoing edges, and
  no edge ever points back to an earlier status.
* Session lifecycle: ACTIVE is the only non-terminal session status.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


# =========================================================================
# Request lifecycle
# =========================================================================


class OvertimeRequestStatus(str, Enum):
    """Overtime request lifecycle states."""

    PENDING = "PENDING"
    RESPONDED = "RESPONDED"
    CERTIFIED = "CERTIFIED"
    PENDING_EXEC_APPROVAL = "PENDING_EXEC_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class OvertimeRequestType(str, Enum):
    STANDARD_REQUEST = "STANDARD_REQUEST"
    MANAGER_INQUIRY = "MANAGER_INQUIRY"


class OvertimeResponse(str, Enum):
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"


class RequestAction(str, Enum):
    """Workflow verbs; each one is allowed from a fixed set of statuses."""

    RESPOND = "respond"
    CERTIFY = "certify"
    APPROVE = "approve"
    REJECT = "reject"


REQUEST_TRANSITIONS: dict[OvertimeRequestStatus, frozenset[OvertimeRequestStatus]] = {
    OvertimeRequestStatus.PENDING: frozenset({OvertimeRequestStatus.RESPONDED}),
    OvertimeRequestStatus.RESPONDED: frozenset({OvertimeRequestStatus.CERTIFIED}),
    OvertimeRequestStatus.CERTIFIED: frozenset({
        OvertimeRequestStatus.PENDING_EXEC_APPROVAL,
        OvertimeRequestStatus.APPROVED,
        OvertimeRequestStatus.REJECTED,
    }),
    OvertimeRequestStatus.PENDING_EXEC_APPROVAL: frozenset({
        OvertimeRequestStatus.APPROVED,
        OvertimeRequestStatus.REJECTED,
    }),
    OvertimeRequestStatus.APPROVED: frozenset(),
    OvertimeRequestStatus.REJECTED: frozenset(),
}

TERMINAL_REQUEST_STATUSES: frozenset[OvertimeRequestStatus] = frozenset({
    OvertimeRequestStatus.APPROVED,
    OvertimeRequestStatus.REJECTED,
})

# (source statuses, target status) per action
ACTION_TRANSITIONS: dict[RequestAction, tuple[frozenset[OvertimeRequestStatus], OvertimeRequestStatus]] = {
    RequestAction.RESPOND: (
        frozenset({OvertimeRequestStatus.PENDING}),
        OvertimeRequestStatus.RESPONDED,
    ),
    RequestAction.CERTIFY: (
        frozenset({OvertimeRequestStatus.RESPONDED}),
        OvertimeRequestStatus.CERTIFIED,
    ),
    RequestAction.APPROVE: (
        frozenset({OvertimeRequestStatus.CERTIFIED, OvertimeRequestStatus.PENDING_EXEC_APPROVAL}),
        OvertimeRequestStatus.APPROVED,
    ),
    RequestAction.REJECT: (
        frozenset({OvertimeRequestStatus.CERTIFIED, OvertimeRequestStatus.PENDING_EXEC_APPROVAL}),
        OvertimeRequestStatus.REJECTED,
    ),
}


def is_valid_transition(
    current: OvertimeRequestStatus, target: OvertimeRequestStatus,
) -> bool:
    """True if ``target`` is reachable from ``current`` in one step."""
    return target in REQUEST_TRANSITIONS.get(current, frozenset())


def target_for_action(
    current: OvertimeRequestStatus, action: RequestAction,
) -> OvertimeRequestStatus | None:
    """Return the status ``action`` leads to, or None if not allowed from ``current``."""
    sources, target = ACTION_TRANSITIONS[action]
    if current not in sources or not is_valid_transition(current, target):
        return None
    return target


# =========================================================================
# Session lifecycle
# =========================================================================


class OvertimeSessionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    AUTO_CLOCKED_OUT = "AUTO_CLOCKED_OUT"


class SessionEndReason(str, Enum):
    """Why a session left ACTIVE."""

    WORKER_CLOCK_OUT = "worker_clock_out"
    LIMIT_EXCEEDED = "limit_exceeded"
    REQUEST_NOT_APPROVED = "request_not_approved"


class TimeEntryOvertimeStatus(str, Enum):
    """Summary status the core writes onto ledger time entries."""

    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    EXCEEDED = "EXCEEDED"
    AUTO_CLOCKED_OUT = "AUTO_CLOCKED_OUT"


# =========================================================================
# Policy
# =========================================================================


@dataclass(frozen=True)
class OvertimePolicy:
    """Organization overtime policy, snapshotted onto each session at start."""

    daily_max_hours: Decimal = Decimal("12")
    grace_period_minutes: int = 30

    def __post_init__(self) -> None:
        if self.daily_max_hours <= 0:
            raise ValueError("daily_max_hours must be positive")
        if self.grace_period_minutes < 0:
            raise ValueError("grace_period_minutes must not be negative")


# =========================================================================
# DTOs
# =========================================================================


@dataclass(frozen=True)
class OvertimeRequest:
    """Immutable snapshot of an overtime request."""

    request_id: UUID
    organization_id: str
    request_type: OvertimeRequestType
    requester_id: str
    requester_name: str
    recipient_id: str
    recipient_name: str
    employee_id: str
    manager_id: str
    reason: str
    status: OvertimeRequestStatus
    project_id: str | None = None
    estimated_hours: Decimal | None = None
    requested_date: date | None = None
    response: OvertimeResponse | None = None
    response_reason: str | None = None
    responded_at: datetime | None = None
    certified_by: str | None = None
    certified_at: datetime | None = None
    certification_notes: str | None = None
    exec_approver_id: str | None = None
    exec_decided_at: datetime | None = None
    exec_notes: str | None = None
    rejection_reason: str | None = None
    approved_hours: Decimal | None = None
    hours_used: Decimal = Decimal("0")
    hours_remaining: Decimal | None = None
    is_active: bool = False
    active_session_id: UUID | None = None
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_REQUEST_STATUSES


@dataclass(frozen=True)
class OvertimeSession:
    """Immutable snapshot of an overtime session."""

    session_id: UUID
    organization_id: str
    overtime_request_id: UUID
    user_id: str
    user_name: str
    manager_id: str
    timecard_entry_id: UUID
    session_start_time: datetime
    approved_hours: Decimal
    hours_used: Decimal
    hours_remaining: Decimal
    status: OvertimeSessionStatus
    daily_max_hours: Decimal
    session_max_hours: Decimal
    grace_period_minutes: int
    flagged_for_review: bool = False
    session_end_time: datetime | None = None
    exceeded_by: Decimal | None = None
    end_reason: SessionEndReason | None = None
    manager_notified_at: datetime | None = None
    auto_clock_out_warning_at: datetime | None = None
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == OvertimeSessionStatus.ACTIVE


@dataclass(frozen=True)
class SessionHoursReport:
    """Result of an interactive hours refresh."""

    session_id: UUID
    hours_used: Decimal
    hours_remaining: Decimal
    percent_used: Decimal


@dataclass(frozen=True)
class SessionEndReport:
    """Result of a worker-initiated clock-out."""

    session_id: UUID
    final_hours_used: Decimal
    exceeded_by: Decimal
    flagged_for_review: bool


@dataclass(frozen=True)
class LiveSessionView:
    """An ACTIVE session with hours recomputed at read time (not persisted)."""

    session: OvertimeSession
    percent_used: Decimal
