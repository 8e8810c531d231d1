"""
Tests for OvertimeApi -- the transaction-per-call facade.

Every call here opens and commits its own session, so seed data is
committed through a short-lived session first and results are read back
through fresh sessions.
"""

from uuid import UUID, uuid4

import pytest
from sqlalchemy import func, select

from overtime_kernel.logging_config import LogContext
from overtime_kernel.models.notification import NotificationModel
from overtime_kernel.models.overtime_request import OvertimeRequestModel
from overtime_kernel.models.overtime_session import OvertimeSessionModel
from overtime_services.overtime_api import CallerContext, OperationResult, OvertimeApi

from tests.factories import (
    EXEC,
    MANAGER,
    ORG,
    OTHER_ORG,
    OUTSIDER,
    WORKER,
    add_device_token,
    add_time_entry,
    seed_users,
)


class RecordingGateway:
    def __init__(self):
        self.calls = []

    def send_multicast(self, tokens, title, body, data):
        self.calls.append({"tokens": list(tokens), "title": title, "body": body, "data": data})

    def titles(self):
        return [c["title"] for c in self.calls]


def caller(user_id, organization_id=ORG):
    return CallerContext(user_id=user_id, organization_id=organization_id, correlation_id="corr-1")


def count(session_factory, model):
    session = session_factory()
    try:
        return session.scalar(select(func.count()).select_from(model))
    finally:
        session.close()


def load(session_factory, model, key):
    session = session_factory()
    try:
        return session.get(model, key)
    finally:
        session.close()


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def seeded(session_factory, clock):
    """Committed directory, a push token for the manager, and an open time entry."""
    session = session_factory()
    try:
        seed_users(session)
        add_device_token(session, MANAGER, "tok-manager")
        entry = add_time_entry(session, WORKER, clock.now())
        session.commit()
        return entry.id
    finally:
        session.close()


@pytest.fixture
def api(session_factory, clock, gateway, seeded):
    return OvertimeApi(session_factory, clock=clock, push_gateway=gateway)


def create(api, **overrides):
    payload = {
        "request_type": "STANDARD_REQUEST",
        "recipient_id": MANAGER,
        "manager_id": MANAGER,
        "employee_id": WORKER,
        "reason": "Finish the color pass",
        "estimated_hours": 3,
    }
    payload.update(overrides)
    return api.create_overtime_request(caller(WORKER), **payload)


def approved_request(api):
    request_id = create(api).data["request_id"]
    assert api.respond_to_overtime_request(caller(MANAGER), request_id, "ACCEPTED").success
    assert api.certify_overtime_request(caller(MANAGER), request_id).success
    assert api.approve_overtime_request(caller(EXEC), request_id, "ok").success
    return request_id


# =============================================================================
# Full workflow
# =============================================================================


class TestWorkflow:
    def test_request_to_clock_out(self, api, seeded, session_factory, clock, gateway):
        request_id = approved_request(api)

        started = api.start_overtime_session(caller(WORKER), request_id, str(seeded))
        assert started.success
        assert started.data["approved_hours"] == 3.0
        assert started.data["hours_remaining"] == 3.0
        session_id = started.data["session_id"]

        clock.advance(seconds=9756)  # 2.71h
        refreshed = api.update_overtime_session_hours(caller(WORKER), session_id)
        assert refreshed.data == {
            "session_id": session_id,
            "hours_used": 2.71,
            "hours_remaining": 0.29,
            "percent_used": 90.3,
        }

        live = api.get_active_overtime_session(caller(MANAGER), user_id=WORKER)
        assert live.data["session_id"] == session_id
        assert live.data["status"] == "ACTIVE"
        assert live.data["manager_notified_at"] is not None
        assert live.data["auto_clock_out_warning_at"] is None

        clock.advance(seconds=1764)  # 3.2h
        ended = api.end_overtime_session(caller(WORKER), session_id)
        assert ended.data["final_hours_used"] == 3.2
        assert ended.data["exceeded_by"] == 0.2
        assert ended.data["flagged_for_review"] is True

        assert api.get_active_overtime_session(caller(WORKER)).data is None

        stored = load(session_factory, OvertimeRequestModel, UUID(request_id))
        assert stored.status == "APPROVED"
        assert stored.is_active is False

        closed = load(session_factory, OvertimeSessionModel, UUID(session_id))
        assert closed.status == "COMPLETED"
        assert closed.flagged_for_review is True

    def test_session_history(self, api, seeded, clock):
        request_id = approved_request(api)
        started = api.start_overtime_session(caller(WORKER), request_id, str(seeded))
        session_id = started.data["session_id"]
        clock.advance(minutes=90)
        assert api.end_overtime_session(caller(WORKER), session_id).success

        result = api.list_overtime_sessions(caller(MANAGER), request_id)

        assert result.success
        [row] = result.data
        assert row["session_id"] == session_id
        assert row["status"] == "COMPLETED"
        assert row["hours_used"] == 1.5
        assert row["exceeded_by"] == 0.0
        assert row["end_reason"] == "worker_clock_out"
        assert row["session_end_time"] == clock.now().isoformat()

    def test_session_history_scoped_to_organization(self, api):
        request_id = approved_request(api)
        result = api.list_overtime_sessions(caller(OUTSIDER, OTHER_ORG), request_id)
        assert result.error_code == "PERMISSION_DENIED"

    def test_push_goes_to_devices(self, api, gateway):
        create(api)
        assert gateway.calls[0]["tokens"] == ["tok-manager"]
        assert gateway.calls[0]["title"] == "Overtime Request"
        assert gateway.calls[0]["data"]["type"] == "overtime_request"

    def test_notifications_committed_with_the_call(self, api, session_factory):
        create(api)
        assert count(session_factory, NotificationModel) == 1

    def test_log_context_restored(self, api):
        create(api)
        assert LogContext.get_all() == {}


# =============================================================================
# Failures
# =============================================================================


class TestFailures:
    def test_permission_denied(self, api):
        request_id = create(api).data["request_id"]
        result = api.respond_to_overtime_request(caller(WORKER), request_id, "ACCEPTED")
        assert isinstance(result, OperationResult)
        assert result.success is False
        assert result.error_code == "PERMISSION_DENIED"
        assert "only the recipient" in result.message

    def test_bad_id(self, api):
        result = api.certify_overtime_request(caller(MANAGER), "not-a-uuid")
        assert result.success is False
        assert result.error_code == "VALIDATION_ERROR"

    def test_unknown_request(self, api):
        result = api.approve_overtime_request(caller(EXEC), str(uuid4()))
        assert result.error_code == "OVERTIME_REQUEST_NOT_FOUND"

    def test_missing_field_rolls_back(self, api, session_factory, captured_logs):
        result = create(api, reason="")
        assert result.error_code == "MISSING_FIELD"
        assert count(session_factory, OvertimeRequestModel) == 0
        refused = [r for r in captured_logs() if r["message"] == "operation_refused"]
        assert refused[0]["operation"] == "create_overtime_request"
        assert refused[0]["correlation_id"] == "corr-1"

    def test_caller_organization_scopes_the_request(self, api):
        request_id = create(api).data["request_id"]
        result = api.respond_to_overtime_request(
            caller(OUTSIDER, OTHER_ORG), request_id, "ACCEPTED",
        )
        assert result.error_code == "PERMISSION_DENIED"

    def test_double_start_refused(self, api, seeded):
        request_id = approved_request(api)
        assert api.start_overtime_session(caller(WORKER), request_id, str(seeded)).success
        again = api.start_overtime_session(caller(WORKER), request_id, str(seeded))
        assert again.success is False
        assert again.error_code == "ACTIVE_SESSION_CONFLICT"

    def test_unexpected_error_reraised(self, session_factory, clock, seeded, captured_logs):
        def broken_authorizer(directory):
            raise RuntimeError("authorizer misconfigured")

        api = OvertimeApi(session_factory, clock=clock, authorizer_factory=broken_authorizer)
        with pytest.raises(RuntimeError):
            create(api)
        assert any(r["message"] == "operation_failed" for r in captured_logs())
        assert count(session_factory, OvertimeRequestModel) == 0
