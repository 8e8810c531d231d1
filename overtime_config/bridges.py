"""
Config -> Kernel Bridges.

Convert ``OvertimeConfig`` sections into kernel value objects.  These live
in overtime_config (the producer) because the kernel never imports
overtime_config.

Usage:
    from overtime_config.bridges import policy_from_config, thresholds_from_config

    config = get_active_config()
    resolver = PolicyResolver(session, defaults=policy_from_config(config))
"""

from __future__ import annotations

from overtime_kernel.domain.overtime import OvertimePolicy
from overtime_kernel.domain.usage import UsageThresholds

from overtime_config.schema import OvertimeConfig


def policy_from_config(config: OvertimeConfig) -> OvertimePolicy:
    return OvertimePolicy(
        daily_max_hours=config.policy.daily_max_hours,
        grace_period_minutes=config.policy.grace_period_minutes,
    )


def thresholds_from_config(config: OvertimeConfig) -> UsageThresholds:
    return UsageThresholds(
        manager_reminder_ratio=config.thresholds.manager_reminder_ratio,
        warning_window_hours=config.thresholds.warning_window_hours,
    )


def executive_roles_from_config(config: OvertimeConfig) -> frozenset[str]:
    return frozenset(config.executive_roles)
