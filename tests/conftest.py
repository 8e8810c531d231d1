"""
Pytest fixtures for the overtime test suite.

Provides:
- An in-memory SQLite engine per test (StaticPool + SAVEPOINT support, see
  overtime_kernel.db.engine.build_engine) with every table created
- A DeterministicClock pinned to tests.factories.START
- A RecordingSink/dispatcher pair so tests can assert on notifications
- Kernel services wired to the per-test session
"""

import json
import logging
from io import StringIO

import pytest
from sqlalchemy.orm import sessionmaker

from overtime_kernel.db.engine import build_engine, create_tables
from overtime_kernel.domain.clock import DeterministicClock
from overtime_kernel.domain.notification import Notification
from overtime_kernel.domain.usage import UsageThresholds
from overtime_kernel.logging_config import LogContext, StructuredFormatter, reset_logging
from overtime_kernel.services.notification_service import NotificationDispatcher
from overtime_kernel.services.overtime_request_service import OvertimeRequestService
from overtime_kernel.services.overtime_session_service import OvertimeSessionService
from overtime_kernel.services.policy_resolver import PolicyResolver
from overtime_kernel.services.time_entry_ledger import TimeEntryLedger
from overtime_kernel.services.user_directory import DirectoryAuthorizer, UserDirectory

from tests.factories import START, WORKER, add_request, add_time_entry, seed_users


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state and LogContext between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def captured_logs():
    """
    Capture overtime_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, session_service):
            session_service.start(...)
            logs = captured_logs()
            assert any(r["message"] == "overtime_session_started" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("overtime_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def users(session):
    seed_users(session)


# =============================================================================
# Time and notifications
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(fixed_time=START)


class RecordingSink:
    """Sink that keeps every notification it is handed."""

    def __init__(self):
        self.sent: list[Notification] = []

    def send(self, notification: Notification) -> None:
        self.sent.append(notification)

    def of_type(self, notification_type: str) -> list[Notification]:
        return [n for n in self.sent if n.type == notification_type]

    def types(self) -> list[str]:
        return [n.type for n in self.sent]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def dispatcher(sink):
    return NotificationDispatcher([sink])


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def directory(session):
    return UserDirectory(session)


@pytest.fixture
def ledger(session, clock):
    return TimeEntryLedger(session, clock)


@pytest.fixture
def request_service(session, clock, dispatcher, directory, users):
    return OvertimeRequestService(
        session,
        clock=clock,
        dispatcher=dispatcher,
        directory=directory,
        authorizer=DirectoryAuthorizer(directory),
    )


@pytest.fixture
def session_service(session, clock, dispatcher, directory, ledger, users):
    return OvertimeSessionService(
        session,
        clock=clock,
        dispatcher=dispatcher,
        policy_resolver=PolicyResolver(session),
        directory=directory,
        ledger=ledger,
        thresholds=UsageThresholds(),
    )


@pytest.fixture
def make_request(session, users):
    """Factory for requests seeded directly in their post-approval state."""

    def _make(approved_hours="3", **kwargs):
        return add_request(session, approved_hours, **kwargs)

    return _make


@pytest.fixture
def make_entry(session, clock):
    """Factory for open ledger entries clocked in at the current clock time."""

    def _make(user_id=WORKER, **kwargs):
        kwargs.setdefault("clock_in_time", clock.now())
        return add_time_entry(session, user_id, **kwargs)

    return _make
