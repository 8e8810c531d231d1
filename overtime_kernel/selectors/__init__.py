"""Read-only selectors returning frozen DTOs."""

from overtime_kernel.selectors.request_selector import OvertimeRequestSelector
from overtime_kernel.selectors.session_selector import OvertimeSessionSelector

__all__ = ["OvertimeRequestSelector", "OvertimeSessionSelector"]
