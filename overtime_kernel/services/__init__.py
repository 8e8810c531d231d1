"""Services for the overtime kernel (write side)."""

from overtime_kernel.services.notification_service import (
    InAppNotificationSink,
    LoggingPushGateway,
    NotificationDispatcher,
    NotificationSink,
    PushGateway,
    PushNotificationSink,
)
from overtime_kernel.services.overtime_request_service import OvertimeRequestService
from overtime_kernel.services.overtime_session_service import OvertimeSessionService
from overtime_kernel.services.policy_resolver import PolicyResolver
from overtime_kernel.services.session_monitor import RefreshOutcome, SessionMonitor
from overtime_kernel.services.time_entry_ledger import TimeEntryLedger
from overtime_kernel.services.user_directory import (
    DirectoryAuthorizer,
    DirectoryUser,
    UserDirectory,
)

__all__ = [
    "DirectoryAuthorizer",
    "DirectoryUser",
    "InAppNotificationSink",
    "LoggingPushGateway",
    "NotificationDispatcher",
    "NotificationSink",
    "OvertimeRequestService",
    "OvertimeSessionService",
    "PolicyResolver",
    "PushGateway",
    "PushNotificationSink",
    "RefreshOutcome",
    "SessionMonitor",
    "TimeEntryLedger",
    "UserDirectory",
]
