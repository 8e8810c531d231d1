"""
Seed-data builders shared by the overtime test suite.

Plain functions over a caller-supplied Session, so the same rows can be
seeded into the per-test session (service tests) or into a short-lived
session that is committed before the scheduler or the API facade opens
its own.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy.orm import Session

from overtime_kernel.domain.overtime import OvertimeRequestStatus, OvertimeRequestType
from overtime_kernel.domain.usage import to_hours
from overtime_kernel.models.device_token import DeviceTokenModel
from overtime_kernel.models.overtime_request import OvertimeRequestModel
from overtime_kernel.models.overtime_settings import OvertimeSettingsModel
from overtime_kernel.models.time_entry import TimeEntryModel
from overtime_kernel.models.user import UserModel

# Monday afternoon, UTC; far enough from midnight that no scenario crosses a day
START = datetime(2024, 3, 4, 17, 0, 0, tzinfo=timezone.utc)

ORG = "org-1"
OTHER_ORG = "org-2"

WORKER = "worker-1"
WORKER_2 = "worker-2"
MANAGER = "manager-1"
EXEC = "exec-1"
ACCOUNTANT = "acct-1"
OUTSIDER = "owner-9"

# (id, organization, display name, email, role)
DIRECTORY = (
    (WORKER, ORG, "Wendy Worker", "wendy@example.com", "CREW"),
    (WORKER_2, ORG, "Walt Worker", None, "CREW"),
    (MANAGER, ORG, "Mona Manager", "mona@example.com", "DEPARTMENT_HEAD"),
    (EXEC, ORG, "Eli Exec", None, "PRODUCER"),
    # No display name and a lower-case role on purpose
    (ACCOUNTANT, ORG, None, "books@example.com", "accounting"),
    (OUTSIDER, OTHER_ORG, "Olga Owner", None, "OWNER"),
)


def seed_users(session: Session, now: datetime = START) -> None:
    for user_id, org, name, email, role in DIRECTORY:
        session.add(
            UserModel(
                id=user_id,
                organization_id=org,
                display_name=name,
                email=email,
                role=role,
                created_at=now,
                updated_at=now,
            )
        )
    session.flush()


def add_time_entry(
    session: Session,
    user_id: str = WORKER,
    clock_in_time: datetime = START,
    organization_id: str = ORG,
) -> TimeEntryModel:
    entry = TimeEntryModel(
        id=uuid4(),
        organization_id=organization_id,
        user_id=user_id,
        clock_in_time=clock_in_time,
        created_at=clock_in_time,
        updated_at=clock_in_time,
    )
    session.add(entry)
    session.flush()
    return entry


def add_request(
    session: Session,
    approved_hours="3",
    status: OvertimeRequestStatus = OvertimeRequestStatus.APPROVED,
    employee_id: str = WORKER,
    manager_id: str = MANAGER,
    organization_id: str = ORG,
    now: datetime = START,
) -> OvertimeRequestModel:
    """A request that has already been through the approval chain."""
    hours = to_hours(approved_hours)
    approved = status == OvertimeRequestStatus.APPROVED
    model = OvertimeRequestModel(
        id=uuid4(),
        organization_id=organization_id,
        request_type=OvertimeRequestType.STANDARD_REQUEST.value,
        requester_id=employee_id,
        requester_name="Wendy Worker",
        recipient_id=manager_id,
        recipient_name="Mona Manager",
        employee_id=employee_id,
        manager_id=manager_id,
        reason="Finish the color pass",
        estimated_hours=hours,
        status=status.value,
        response="ACCEPTED",
        approved_hours=hours if approved else None,
        hours_used=Decimal("0"),
        hours_remaining=hours if approved else None,
        is_active=False,
        created_at=now,
        updated_at=now,
    )
    session.add(model)
    session.flush()
    return model


def add_settings(
    session: Session,
    daily_max_overtime_hours=None,
    grace_period_minutes=None,
    organization_id: str = ORG,
    now: datetime = START,
) -> OvertimeSettingsModel:
    row = OvertimeSettingsModel(
        organization_id=organization_id,
        daily_max_overtime_hours=(
            Decimal(str(daily_max_overtime_hours))
            if daily_max_overtime_hours is not None
            else None
        ),
        grace_period_minutes=grace_period_minutes,
        created_at=now,
        updated_at=now,
    )
    session.add(row)
    session.flush()
    return row


def add_device_token(
    session: Session,
    user_id: str,
    token: str,
    is_active: bool = True,
    now: datetime = START,
) -> DeviceTokenModel:
    row = DeviceTokenModel(
        user_id=user_id,
        token=token,
        platform="ios",
        is_active=is_active,
        created_at=now,
        updated_at=now,
    )
    session.add(row)
    session.flush()
    return row
