"""
Typed Exception Hierarchy for the Overtime Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every failure the core can produce is recovered at the call boundary and
returned to the caller as a structured failure.  Callers branch on the
exception TYPE or its ``code`` attribute, never on message text:

    try:
        workflow.respond(request_id, caller_id, "ACCEPTED")
    except StateError as e:
        api_response(code=e.code, status=e.current_status)

Every exception has:
  1. A TYPED class (catch by type, not message)
  2. A ``code`` class attribute (machine-readable, API-safe)
  3. Structured fields (request_id, session_id, status, ...)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    OvertimeKernelError (base)
    |
    +-- ValidationError
    |   +-- MissingFieldError
    |
    +-- PermissionDeniedError
    |
    +-- NotFoundError
    |   +-- OvertimeRequestNotFoundError
    |   +-- OvertimeSessionNotFoundError
    |   +-- TimeEntryNotFoundError
    |
    +-- StateError
    |   +-- InvalidRequestTransitionError
    |   +-- SessionNotActiveError
    |   +-- InvariantViolationError
    |
    +-- ResourceLimitError
    |   +-- DailyLimitExceededError
    |   +-- ActiveSessionConflictError
    |
    +-- ConcurrencyError
        +-- OptimisticLockError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                          | When Raised
------------|-------------------------------|-----------------------------------
Validation  | VALIDATION_ERROR              | Malformed input value
            | MISSING_FIELD                 | Required input absent
Permission  | PERMISSION_DENIED             | Caller is not the required actor
NotFound    | OVERTIME_REQUEST_NOT_FOUND    | Request ID doesn't exist
            | OVERTIME_SESSION_NOT_FOUND    | Session ID doesn't exist
            | TIME_ENTRY_NOT_FOUND          | Ledger entry doesn't exist
State       | INVALID_REQUEST_TRANSITION    | Status precondition violated
            | SESSION_NOT_ACTIVE            | Session already terminated
            | INVARIANT_VIOLATION           | Cross-entity invariant broken
Limit       | DAILY_LIMIT_EXCEEDED          | Daily overtime cap would be hit
            | ACTIVE_SESSION_CONFLICT       | An ACTIVE session already exists
Concurrency | OPTIMISTIC_LOCK_CONFLICT      | Row changed under the caller

===============================================================================
"""


class OvertimeKernelError(Exception):
    """
    Base exception for all overtime kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "OVERTIME_KERNEL_ERROR"


# Validation


class ValidationError(OvertimeKernelError):
    """Input is missing or malformed."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class MissingFieldError(ValidationError):
    """One or more required fields were not supplied."""

    code: str = "MISSING_FIELD"

    def __init__(self, fields: list[str] | tuple[str, ...]):
        self.fields = tuple(fields)
        super().__init__(
            f"Missing required fields: {', '.join(self.fields)}",
            field=self.fields[0] if self.fields else None,
        )


# Permission


class PermissionDeniedError(OvertimeKernelError):
    """Caller is not the actor required for this operation."""

    code: str = "PERMISSION_DENIED"

    def __init__(self, actor_id: str, action: str, reason: str):
        self.actor_id = actor_id
        self.action = action
        self.reason = reason
        super().__init__(f"Unauthorized: {actor_id} cannot {action}: {reason}")


# Not found


class NotFoundError(OvertimeKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"


class OvertimeRequestNotFoundError(NotFoundError):
    """Overtime request with given ID was not found."""

    code: str = "OVERTIME_REQUEST_NOT_FOUND"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Overtime request not found: {request_id}")


class OvertimeSessionNotFoundError(NotFoundError):
    """Overtime session with given ID was not found."""

    code: str = "OVERTIME_SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Overtime session not found: {session_id}")


class TimeEntryNotFoundError(NotFoundError):
    """Time entry with given ID was not found in the ledger."""

    code: str = "TIME_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Time entry not found: {entry_id}")


# State


class StateError(OvertimeKernelError):
    """Operation is invalid for the entity's current status."""

    code: str = "STATE_ERROR"


class InvalidRequestTransitionError(StateError):
    """Overtime request cannot move from its current status."""

    code: str = "INVALID_REQUEST_TRANSITION"

    def __init__(self, request_id: str, current_status: str, action: str, detail: str = ""):
        self.request_id = request_id
        self.current_status = current_status
        self.action = action
        message = f"Cannot {action} overtime request {request_id} in status {current_status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SessionNotActiveError(StateError):
    """Overtime session has already been terminated."""

    code: str = "SESSION_NOT_ACTIVE"

    def __init__(self, session_id: str, current_status: str):
        self.session_id = session_id
        self.current_status = current_status
        super().__init__(
            f"Overtime session {session_id} is not active (status={current_status})"
        )


class InvariantViolationError(StateError):
    """A cross-entity invariant would be broken by this operation."""

    code: str = "INVARIANT_VIOLATION"

    def __init__(self, invariant: str, detail: str):
        self.invariant = invariant
        self.detail = detail
        super().__init__(f"Invariant {invariant} violated: {detail}")


# Resource limits


class ResourceLimitError(OvertimeKernelError):
    """A capacity rule prevents the operation."""

    code: str = "RESOURCE_LIMIT"


class DailyLimitExceededError(ResourceLimitError):
    """Starting the session would exceed the daily overtime cap."""

    code: str = "DAILY_LIMIT_EXCEEDED"

    def __init__(self, user_id: str, hours_today, requested_hours, daily_max_hours):
        self.user_id = user_id
        self.hours_today = hours_today
        self.requested_hours = requested_hours
        self.daily_max_hours = daily_max_hours
        super().__init__(
            f"Daily overtime limit ({daily_max_hours}h) would be exceeded: "
            f"{hours_today}h already scheduled today, {requested_hours}h requested"
        )


class ActiveSessionConflictError(ResourceLimitError):
    """An ACTIVE session already exists for the request or the worker."""

    code: str = "ACTIVE_SESSION_CONFLICT"

    def __init__(self, user_id: str, existing_session_id: str | None = None):
        self.user_id = user_id
        self.existing_session_id = existing_session_id
        super().__init__(
            f"Active overtime session already exists for {user_id}"
            + (f" ({existing_session_id})" if existing_session_id else "")
        )


# Concurrency


class ConcurrencyError(OvertimeKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )
