"""
Configuration Loader (``overtime_config.loader``).

Responsibility
--------------
Loads the YAML configuration file and parses it into the frozen
``overtime_config.schema`` dataclasses.  Runtime callers go through
``overtime_config.get_active_config()``; this module is the parsing
layer underneath it.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Out-of-range or wrongly typed values  -> ``ValueError``.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from overtime_config.schema import (
    DatabaseConfig,
    LoggingConfig,
    OvertimeConfig,
    PolicyDefaults,
    SchedulerConfig,
    ThresholdConfig,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _decimal(value: Any, name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{name} must be a number, got {value!r}")


def _positive_int(value: Any, name: str, allow_zero: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < 0 or (value == 0 and not allow_zero):
        raise ValueError(f"{name} must be {'non-negative' if allow_zero else 'positive'}")
    return value


def parse_policy(data: dict[str, Any]) -> PolicyDefaults:
    defaults = PolicyDefaults()
    daily_max = _decimal(data.get("daily_max_hours", defaults.daily_max_hours), "policy.daily_max_hours")
    if daily_max <= 0:
        raise ValueError("policy.daily_max_hours must be positive")
    grace = _positive_int(
        data.get("grace_period_minutes", defaults.grace_period_minutes),
        "policy.grace_period_minutes",
        allow_zero=True,
    )
    return PolicyDefaults(daily_max_hours=daily_max, grace_period_minutes=grace)


def parse_thresholds(data: dict[str, Any]) -> ThresholdConfig:
    defaults = ThresholdConfig()
    ratio = _decimal(
        data.get("manager_reminder_ratio", defaults.manager_reminder_ratio),
        "thresholds.manager_reminder_ratio",
    )
    if not (Decimal("0") < ratio <= Decimal("1")):
        raise ValueError("thresholds.manager_reminder_ratio must be in (0, 1]")
    window = _decimal(
        data.get("warning_window_hours", defaults.warning_window_hours),
        "thresholds.warning_window_hours",
    )
    if window < 0:
        raise ValueError("thresholds.warning_window_hours must not be negative")
    return ThresholdConfig(manager_reminder_ratio=ratio, warning_window_hours=window)


def parse_scheduler(data: dict[str, Any]) -> SchedulerConfig:
    return SchedulerConfig(
        tick_interval_seconds=_positive_int(
            data.get("tick_interval_seconds", SchedulerConfig().tick_interval_seconds),
            "scheduler.tick_interval_seconds",
        ),
    )


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    defaults = DatabaseConfig()
    url = data.get("url", defaults.url)
    if not isinstance(url, str) or not url:
        raise ValueError("database.url must be a non-empty string")
    return DatabaseConfig(
        url=url,
        echo=bool(data.get("echo", defaults.echo)),
        pool_size=_positive_int(data.get("pool_size", defaults.pool_size), "database.pool_size"),
        max_overflow=_positive_int(
            data.get("max_overflow", defaults.max_overflow), "database.max_overflow",
            allow_zero=True,
        ),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    level = str(data.get("level", LoggingConfig().level)).upper()
    if level not in logging.getLevelNamesMapping():
        raise ValueError(f"logging.level {level!r} is not a logging level")
    return LoggingConfig(level=level)


def parse_executive_roles(value: Any) -> tuple[str, ...]:
    if value is None:
        return OvertimeConfig().executive_roles
    if not isinstance(value, list) or not all(isinstance(r, str) and r for r in value):
        raise ValueError("executive_roles must be a list of role names")
    return tuple(sorted({r.strip().upper() for r in value}))


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"{name} must be a mapping")
    return section


def parse_config(data: dict[str, Any]) -> OvertimeConfig:
    """Parse a whole configuration mapping."""
    return OvertimeConfig(
        config_id=str(data.get("config_id", "default")),
        version=_positive_int(data.get("version", 1), "version"),
        policy=parse_policy(_section(data, "policy")),
        thresholds=parse_thresholds(_section(data, "thresholds")),
        executive_roles=parse_executive_roles(data.get("executive_roles")),
        scheduler=parse_scheduler(_section(data, "scheduler")),
        database=parse_database(_section(data, "database")),
        logging=parse_logging(_section(data, "logging")),
    )


def load_config(path: Path) -> OvertimeConfig:
    return parse_config(load_yaml_file(path))
