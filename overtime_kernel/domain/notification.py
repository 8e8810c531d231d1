"""
Notification value objects (``overtime_kernel.domain.notification``).

A ``Notification`` is what the core hands to its sinks: the in-app record
and, when ``push_title`` is set, the push payload.  Builders below keep
the wording for each overtime event in one place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NotificationCategory(str, Enum):
    OVERTIME_REQUEST = "overtime_request"
    OVERTIME_ALERT = "overtime_alert"


class NotificationPriority(str, Enum):
    NORMAL = "NORMAL"
    HIGH = "HIGH"


@dataclass(frozen=True)
class Notification:
    user_id: str
    organization_id: str
    category: NotificationCategory
    type: str
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    priority: NotificationPriority = NotificationPriority.NORMAL
    push_title: str | None = None
    push_body: str | None = None

    @property
    def wants_push(self) -> bool:
        return self.push_title is not None


# -------------------------------------------------------------------------
# Request workflow
# -------------------------------------------------------------------------


def request_created(
    *, recipient_id: str, organization_id: str, request_id: str,
    request_type: str, requester_id: str, requester_name: str, reason: str,
) -> Notification:
    inquiry = request_type == "MANAGER_INQUIRY"
    return Notification(
        user_id=recipient_id,
        organization_id=organization_id,
        category=NotificationCategory.OVERTIME_REQUEST,
        type="overtime_inquiry" if inquiry else "overtime_request",
        title="Overtime Inquiry from Manager" if inquiry else "Overtime Request",
        message=(
            f"{requester_name} is asking if you need overtime"
            if inquiry
            else f"{requester_name} has requested overtime: {reason}"
        ),
        data={
            "overtime_request_id": request_id,
            "request_type": request_type,
            "requester_id": requester_id,
            "requester_name": requester_name,
        },
        push_title="Overtime Inquiry" if inquiry else "Overtime Request",
        push_body=(
            f"{requester_name} is asking if you need overtime"
            if inquiry
            else f"{requester_name} has requested overtime"
        ),
    )


def request_responded(
    *, requester_id: str, organization_id: str, request_id: str,
    recipient_name: str, response: str,
) -> Notification:
    verb = "accepted" if response == "ACCEPTED" else "declined"
    return Notification(
        user_id=requester_id,
        organization_id=organization_id,
        category=NotificationCategory.OVERTIME_REQUEST,
        type="overtime_response",
        title="Overtime Request Response",
        message=f"{recipient_name} has {verb} your overtime request",
        data={"overtime_request_id": request_id, "response": response},
    )


def pending_exec_approval(
    *, user_id: str, organization_id: str, request_id: str,
    employee_label: str, manager_id: str, manager_name: str,
) -> Notification:
    return Notification(
        user_id=user_id,
        organization_id=organization_id,
        category=NotificationCategory.OVERTIME_REQUEST,
        type="overtime_pending_approval",
        title="Overtime Request Pending Approval",
        message=(
            f"Overtime request from {employee_label} has been certified "
            "and requires approval"
        ),
        data={
            "overtime_request_id": request_id,
            "manager_id": manager_id,
            "manager_name": manager_name,
        },
    )


def request_certified(
    *, employee_id: str, organization_id: str, request_id: str, manager_name: str,
) -> Notification:
    return Notification(
        user_id=employee_id,
        organization_id=organization_id,
        category=NotificationCategory.OVERTIME_REQUEST,
        type="overtime_certified",
        title="Overtime Request Certified",
        message=(
            f"Your overtime request has been certified by {manager_name} "
            "and is pending executive approval"
        ),
        data={"overtime_request_id": request_id},
    )


def request_decided(
    *, user_id: str, organization_id: str, request_id: str, approved: bool,
    decider_id: str, decider_name: str, rejection_reason: str | None = None,
) -> Notification:
    if approved:
        return Notification(
            user_id=user_id,
            organization_id=organization_id,
            category=NotificationCategory.OVERTIME_REQUEST,
            type="overtime_approved",
            title="Overtime Request Approved",
            message=f"Your overtime request has been approved by {decider_name}",
            data={
                "overtime_request_id": request_id,
                "approver_id": decider_id,
                "approver_name": decider_name,
            },
        )
    return Notification(
        user_id=user_id,
        organization_id=organization_id,
        category=NotificationCategory.OVERTIME_REQUEST,
        type="overtime_rejected",
        title="Overtime Request Rejected",
        message=(
            f"Your overtime request has been rejected by {decider_name}: "
            f"{rejection_reason}"
        ),
        data={
            "overtime_request_id": request_id,
            "rejector_id": decider_id,
            "rejector_name": decider_name,
            "rejection_reason": rejection_reason,
        },
    )


# -------------------------------------------------------------------------
# Session monitoring
# -------------------------------------------------------------------------


def limit_approaching(
    *, manager_id: str, organization_id: str, session_id: str, user_id: str,
    user_name: str, hours_used: str, hours_remaining: str,
) -> Notification:
    return Notification(
        user_id=manager_id,
        organization_id=organization_id,
        category=NotificationCategory.OVERTIME_ALERT,
        type="overtime_limit_approaching",
        title="Direct Report Approaching Overtime Limit",
        message=(
            f"{user_name} is approaching their overtime limit. "
            "Please check in to ensure proper clock out."
        ),
        data={
            "overtime_session_id": session_id,
            "user_id": user_id,
            "hours_used": hours_used,
            "hours_remaining": hours_remaining,
        },
        push_title="OT Limit Approaching",
        push_body=f"{user_name} nearing overtime limit",
    )


def clock_out_warning(
    *, user_id: str, organization_id: str, session_id: str, minutes_remaining: int,
) -> Notification:
    return Notification(
        user_id=user_id,
        organization_id=organization_id,
        category=NotificationCategory.OVERTIME_ALERT,
        type="auto_clockout_warning",
        title="Overtime Limit Almost Reached",
        message=(
            f"You will be automatically clocked out in {minutes_remaining} minutes. "
            "Please finish up and clock out manually."
        ),
        data={
            "overtime_session_id": session_id,
            "minutes_remaining": minutes_remaining,
        },
        priority=NotificationPriority.HIGH,
        push_title=f"Auto Clock-Out in {minutes_remaining} Min",
        push_body="Your overtime limit is almost reached",
    )


def auto_clocked_out_worker(
    *, user_id: str, organization_id: str, session_id: str,
) -> Notification:
    return Notification(
        user_id=user_id,
        organization_id=organization_id,
        category=NotificationCategory.OVERTIME_ALERT,
        type="auto_clocked_out",
        title="You Have Been Automatically Clocked Out",
        message=(
            "Your overtime limit has been reached. If you need additional "
            "overtime, please submit a new request."
        ),
        data={"overtime_session_id": session_id},
        priority=NotificationPriority.HIGH,
        push_title="Auto Clocked Out",
        push_body="Your overtime limit has been reached",
    )


def auto_clocked_out_manager(
    *, manager_id: str, organization_id: str, session_id: str, user_id: str,
    user_name: str,
) -> Notification:
    return Notification(
        user_id=manager_id,
        organization_id=organization_id,
        category=NotificationCategory.OVERTIME_ALERT,
        type="employee_auto_clocked_out",
        title="Employee Auto-Clocked Out",
        message=(
            f"{user_name} was automatically clocked out after reaching "
            "overtime limit. Please review."
        ),
        data={
            "overtime_session_id": session_id,
            "user_id": user_id,
            "requires_review": True,
        },
        push_title="Employee Auto-Clocked Out",
        push_body=f"{user_name} reached overtime limit",
    )
