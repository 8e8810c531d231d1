"""
Overtime configuration schema.

Frozen dataclasses the YAML configuration set is parsed into.  Defaults
here mirror ``sets/default.yaml`` so a partial file still yields a
complete configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from overtime_kernel.domain.authority import DEFAULT_EXECUTIVE_ROLES


@dataclass(frozen=True)
class PolicyDefaults:
    """Organization policy used when ``overtime_settings`` has no override."""

    daily_max_hours: Decimal = Decimal("12")
    grace_period_minutes: int = 30


@dataclass(frozen=True)
class ThresholdConfig:
    manager_reminder_ratio: Decimal = Decimal("0.9")
    warning_window_hours: Decimal = Decimal("0.25")


@dataclass(frozen=True)
class SchedulerConfig:
    tick_interval_seconds: int = 300


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "sqlite:///overtime.db"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class OvertimeConfig:
    """The complete runtime configuration."""

    config_id: str = "default"
    version: int = 1
    policy: PolicyDefaults = field(default_factory=PolicyDefaults)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    executive_roles: tuple[str, ...] = tuple(sorted(DEFAULT_EXECUTIVE_ROLES))
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
