"""
Overtime Kernel

Overtime authorization and usage tracking:
- Request approval chain with a one-way state machine
- Live session monitoring against the approved allotment
- Once-only threshold reminders
- Optimistic versioning on every mutable row
"""

__version__ = "0.1.0"
