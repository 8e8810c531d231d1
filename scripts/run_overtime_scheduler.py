#!/usr/bin/env python3
"""
Run the overtime auto clock-out scheduler.

Every tick re-evaluates all ACTIVE overtime sessions: persists hours used,
sends the manager reminder and the clock-out warning once each, and
auto-clocks-out sessions past their approved hours plus grace period.

Usage:
  python3 scripts/run_overtime_scheduler.py                 # loop every tick_interval_seconds
  python3 scripts/run_overtime_scheduler.py --once          # one pass, then exit
  python3 scripts/run_overtime_scheduler.py --interval 60 --database-url postgresql://...

Configuration comes from overtime_config (OVERTIME_CONFIG_PATH,
OVERTIME_DATABASE_URL); command-line flags win over both.
"""

import argparse
import signal
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run the overtime auto clock-out scheduler")
    p.add_argument("--once", action="store_true", help="Run a single pass and exit")
    p.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Seconds between passes (default: scheduler.tick_interval_seconds)",
    )
    p.add_argument("--database-url", default=None, help="Database URL (overrides config)")
    p.add_argument("--config", default=None, help="Path to an overtime configuration YAML")
    p.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before starting (local runs)",
    )
    return p.parse_args()


def main() -> int:
    args = _parse_args()

    from overtime_batch.services.scheduler import PeriodicScheduler
    from overtime_config import get_active_config
    from overtime_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
    from overtime_kernel.domain.clock import SystemClock
    from overtime_kernel.logging_config import configure_logging, get_logger
    from overtime_kernel.services.notification_service import LoggingPushGateway
    from overtime_services.wiring import auto_clock_out_job_factory

    config = get_active_config(args.config)
    configure_logging(level=config.logging.level)
    logger = get_logger("scripts.scheduler")

    database_url = args.database_url or config.database.url
    try:
        engine = init_engine_from_url(
            database_url,
            echo=config.database.echo,
            pool_size=config.database.pool_size,
            max_overflow=config.database.max_overflow,
        )
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    if args.create_tables:
        create_tables(engine)

    interval = args.interval or config.scheduler.tick_interval_seconds
    scheduler = PeriodicScheduler(
        session_factory=get_session_factory(),
        job_factory=auto_clock_out_job_factory(SystemClock(), config, LoggingPushGateway()),
        tick_interval_seconds=interval,
    )

    if args.once:
        result = scheduler.tick()
        print(
            f"  checked={result.checked} reminders={result.reminders} "
            f"warnings={result.warnings} clocked_out={result.clocked_out} "
            f"force_closed={result.force_closed} failed={result.failed}"
        )
        return 0 if result.failed == 0 else 2

    def _shutdown(signum, frame):
        logger.info("scheduler_signal_received", extra={"signal": signum})
        scheduler.stop()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    scheduler.start()
    scheduler.wait()
    return 0


if __name__ == "__main__":
    sys.exit(main())
