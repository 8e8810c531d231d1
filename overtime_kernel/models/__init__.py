"""ORM models.  Importing this package registers every table on Base.metadata."""

from overtime_kernel.models.device_token import DeviceTokenModel
from overtime_kernel.models.notification import NotificationModel
from overtime_kernel.models.overtime_request import OvertimeRequestModel
from overtime_kernel.models.overtime_session import OvertimeSessionModel
from overtime_kernel.models.overtime_settings import OvertimeSettingsModel
from overtime_kernel.models.time_entry import TimeEntryModel
from overtime_kernel.models.user import UserModel

__all__ = [
    "DeviceTokenModel",
    "NotificationModel",
    "OvertimeRequestModel",
    "OvertimeSessionModel",
    "OvertimeSettingsModel",
    "TimeEntryModel",
    "UserModel",
]
