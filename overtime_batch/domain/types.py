"""
overtime_batch.domain.types -- Pure frozen dataclasses for the scheduler.

ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID


class SessionCheckAction(str, Enum):
    """What one scheduler pass did to one ACTIVE session."""

    REFRESHED = "refreshed"
    AUTO_CLOCKED_OUT = "auto_clocked_out"
    FORCE_CLOSED = "force_closed"
    SKIPPED = "skipped"  # Closed by someone else between scan and check
    FAILED = "failed"


@dataclass(frozen=True)
class SessionCheckResult:
    session_id: UUID
    action: SessionCheckAction
    manager_reminder_sent: bool = False
    clock_out_warning_sent: bool = False
    error_message: str | None = None


@dataclass(frozen=True)
class SchedulerRunResult:
    """Outcome of one auto clock-out pass over every ACTIVE session."""

    started_at: datetime
    checked: int = 0
    reminders: int = 0
    warnings: int = 0
    clocked_out: int = 0
    force_closed: int = 0
    failed: int = 0
    items: tuple[SessionCheckResult, ...] = field(default_factory=tuple)

    @classmethod
    def from_items(
        cls, started_at: datetime, items: tuple[SessionCheckResult, ...],
    ) -> SchedulerRunResult:
        return cls(
            started_at=started_at,
            checked=len(items),
            reminders=sum(1 for i in items if i.manager_reminder_sent),
            warnings=sum(1 for i in items if i.clock_out_warning_sent),
            clocked_out=sum(1 for i in items if i.action == SessionCheckAction.AUTO_CLOCKED_OUT),
            force_closed=sum(1 for i in items if i.action == SessionCheckAction.FORCE_CLOSED),
            failed=sum(1 for i in items if i.action == SessionCheckAction.FAILED),
            items=items,
        )
