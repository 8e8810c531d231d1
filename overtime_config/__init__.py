"""
overtime_config -- single public entrypoint for overtime configuration.

Responsibility:
    ``get_active_config()`` is the only way to obtain configuration at
    runtime.  It is also the only place that reads environment variables:

    * ``OVERTIME_CONFIG_PATH``  -- YAML file to load instead of
      ``sets/default.yaml``.
    * ``OVERTIME_DATABASE_URL`` -- overrides ``database.url``.

Architecture position:
    Sits above ``overtime_kernel`` and below ``overtime_services`` and the
    scheduler script.  The kernel never imports from ``overtime_config``;
    ``bridges`` translates configuration into kernel value objects.

Failure modes:
    - ``FileNotFoundError`` if the configuration file does not exist.
    - ``ValueError`` on schema violations.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path

from overtime_kernel.logging_config import get_logger

from overtime_config.loader import load_config
from overtime_config.schema import OvertimeConfig

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

CONFIG_PATH_ENV = "OVERTIME_CONFIG_PATH"
DATABASE_URL_ENV = "OVERTIME_DATABASE_URL"


def get_active_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> OvertimeConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: explicit ``config_path``, then
    ``OVERTIME_CONFIG_PATH``, then the bundled default set.  A
    ``OVERTIME_DATABASE_URL`` value always wins over the file's
    ``database.url``.
    """
    env = os.environ if environ is None else environ
    path = Path(config_path or env.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)

    config = load_config(path)

    database_url = env.get(DATABASE_URL_ENV)
    if database_url:
        config = replace(config, database=replace(config.database, url=database_url))

    _logger.info(
        "OVERTIME_CONFIG_TRACE",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "config_path": str(path),
            "daily_max_hours": config.policy.daily_max_hours,
            "grace_period_minutes": config.policy.grace_period_minutes,
            "tick_interval_seconds": config.scheduler.tick_interval_seconds,
            "database_url_overridden": bool(database_url),
        },
    )
    return config


__all__ = ["DEFAULT_CONFIG_PATH", "OvertimeConfig", "get_active_config"]
