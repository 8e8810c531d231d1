"""Outer surface of the overtime core: the API facade and its wiring."""

from overtime_services.overtime_api import CallerContext, OperationResult, OvertimeApi
from overtime_services.wiring import OvertimeServices, build_services

__all__ = [
    "CallerContext",
    "OperationResult",
    "OvertimeApi",
    "OvertimeServices",
    "build_services",
]
