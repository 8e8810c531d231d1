"""
Tests for overtime_kernel.db -- engine helpers and column types.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import StatementError

from overtime_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from overtime_kernel.models.user import UserModel

from tests.factories import START


@pytest.fixture
def module_engine():
    engine = init_engine_from_url("sqlite://")
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


def add_user(session, user_id="u-1", when=START):
    session.add(
        UserModel(
            id=user_id, organization_id="org-1", display_name=None, email=None,
            role="CREW", created_at=when, updated_at=when,
        )
    )


def user_count():
    session = get_session()
    try:
        return session.scalar(select(func.count()).select_from(UserModel))
    finally:
        session.close()


class TestModuleEngine:
    def test_uninitialized_raises(self):
        reset_engine()
        for accessor in (get_engine, get_session, get_session_factory):
            with pytest.raises(RuntimeError):
                accessor()

    def test_init_logs_dialect(self, captured_logs):
        init_engine_from_url("sqlite://")
        try:
            record = [r for r in captured_logs() if r["message"] == "engine_initialized"][0]
            assert record["dialect"] == "sqlite"
        finally:
            reset_engine()

    def test_session_scope_commits(self, module_engine):
        with session_scope() as session:
            add_user(session)
        assert user_count() == 1

    def test_session_scope_rolls_back(self, module_engine):
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                add_user(session)
                session.flush()
                raise RuntimeError("abort")
        assert user_count() == 0


class TestUTCDateTime:
    def test_round_trip_is_aware_utc(self, session):
        add_user(session)
        session.commit()
        session.expire_all()

        stored = session.get(UserModel, "u-1")
        assert stored.created_at == START
        assert stored.created_at.tzinfo is not None

    def test_naive_datetime_rejected(self, session):
        add_user(session, when=datetime(2024, 3, 4, 17, 0))
        with pytest.raises((ValueError, StatementError)):
            session.flush()

    def test_offset_normalised(self, session):
        local = START.astimezone(timezone(timedelta(hours=-5)))
        add_user(session, when=local)
        session.commit()
        session.expire_all()

        assert session.get(UserModel, "u-1").created_at == START
