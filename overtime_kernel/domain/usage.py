"""
Session usage arithmetic (``overtime_kernel.domain.usage``).

Responsibility
--------------
The single place where elapsed overtime is turned into hours used, hours
remaining, percent used and overrun, and where threshold crossings are
decided.  The interactive tracker and the periodic scheduler both call
these functions, so the two write paths can never disagree.

Architecture position
---------------------
**Kernel domain layer** -- pure functions.  ZERO I/O.  "now" is always
passed in by the caller from an injected Clock.

Invariants enforced
-------------------
* ``hours_used + hours_remaining == approved_hours`` until the session
  overruns; afterwards ``hours_remaining`` clamps to 0 and
  ``exceeded_by == hours_used - approved_hours``.
* Reported hours are quantized to 0.01 and percentages to 0.1 with
  ROUND_HALF_UP.  Percent used and every threshold decision are taken on
  the exact elapsed time, never on the rounded figure.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

HOURS_QUANTUM = Decimal("0.01")
PERCENT_QUANTUM = Decimal("0.1")
SECONDS_PER_HOUR = Decimal("3600")
MINUTES_PER_HOUR = Decimal("60")
ZERO = Decimal("0")
ONE_HUNDRED = Decimal("100")


def to_hours(value: Decimal | int | float | str) -> Decimal:
    """Coerce an int/float/str/Decimal hour figure to a quantized Decimal."""
    if isinstance(value, Decimal):
        dec = value
    else:
        dec = Decimal(str(value))
    return dec.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)


def elapsed_hours(start: datetime, now: datetime) -> Decimal:
    """Exact hours between ``start`` and ``now``; never negative."""
    seconds = Decimal(str((now - start).total_seconds()))
    if seconds < 0:
        return ZERO
    return seconds / SECONDS_PER_HOUR


@dataclass(frozen=True)
class UsageThresholds:
    """When reminders fire, relative to the approved budget."""

    manager_reminder_ratio: Decimal = Decimal("0.9")
    warning_window_hours: Decimal = Decimal("0.25")

    def __post_init__(self) -> None:
        if not (ZERO < self.manager_reminder_ratio <= Decimal("1")):
            raise ValueError("manager_reminder_ratio must be in (0, 1]")
        if self.warning_window_hours < 0:
            raise ValueError("warning_window_hours must not be negative")

    @property
    def warning_window_minutes(self) -> int:
        return int(self.warning_window_hours * 60)


@dataclass(frozen=True)
class SessionUsage:
    """Usage of one session at one instant.

    ``elapsed`` is the unrounded figure the thresholds are judged on; the
    other fields are the rounded values that get persisted and reported.
    """

    approved_hours: Decimal
    hours_used: Decimal
    hours_remaining: Decimal
    percent_used: Decimal
    exceeded_by: Decimal
    elapsed: Decimal

    @property
    def is_over_budget(self) -> bool:
        return self.exceeded_by > 0


@dataclass(frozen=True)
class ThresholdEvaluation:
    """Which thresholds the usage has crossed (latches are applied by the caller)."""

    manager_reminder_due: bool
    clock_out_warning_due: bool
    auto_clock_out_due: bool
    max_hours: Decimal


def compute_usage(approved_hours: Decimal, elapsed: Decimal) -> SessionUsage:
    """Derive the reported figures from an exact elapsed-hours value."""
    approved = to_hours(approved_hours)
    exact = max(ZERO, Decimal(elapsed))
    used = to_hours(exact)
    remaining = max(ZERO, approved - used).quantize(HOURS_QUANTUM)
    exceeded = max(ZERO, used - approved).quantize(HOURS_QUANTUM)
    if approved > 0:
        percent = (exact / approved * ONE_HUNDRED).quantize(
            PERCENT_QUANTUM, rounding=ROUND_HALF_UP,
        )
    else:
        # A zero budget is fully consumed the moment the session starts
        percent = ONE_HUNDRED.quantize(PERCENT_QUANTUM)
    return SessionUsage(
        approved_hours=approved,
        hours_used=used,
        hours_remaining=remaining,
        percent_used=percent,
        exceeded_by=exceeded,
        elapsed=exact,
    )


def usage_at(approved_hours: Decimal, start: datetime, now: datetime) -> SessionUsage:
    """Usage of a session started at ``start`` as observed at ``now``."""
    return compute_usage(approved_hours, elapsed_hours(start, now))


def grace_hours(grace_period_minutes: int) -> Decimal:
    return Decimal(grace_period_minutes) / MINUTES_PER_HOUR


def evaluate_thresholds(
    usage: SessionUsage,
    grace_period_minutes: int,
    thresholds: UsageThresholds = UsageThresholds(),
) -> ThresholdEvaluation:
    """Decide which notifications and terminations the usage calls for.

    * manager reminder at ``manager_reminder_ratio`` of the budget
    * worker warning once ``warning_window_hours`` or less remain
    * auto clock-out at budget + grace period

    All three compare the exact elapsed time, so a session is never cut
    off or reported early because its rounded hours tipped over a line.
    """
    approved = usage.approved_hours
    elapsed = usage.elapsed
    max_hours = approved + grace_hours(grace_period_minutes)
    return ThresholdEvaluation(
        manager_reminder_due=elapsed >= approved * thresholds.manager_reminder_ratio,
        clock_out_warning_due=elapsed >= approved - thresholds.warning_window_hours,
        auto_clock_out_due=elapsed >= max_hours,
        max_hours=max_hours,
    )
