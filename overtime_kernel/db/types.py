"""
Module: overtime_kernel.db.types
Responsibility: Column type decorators shared by every model.  Centralizes
    UUID storage and UTC normalisation so PostgreSQL and SQLite behave the
    same way.
Architecture position: Kernel > DB.  May be imported by models/ and db/base.py.
    MUST NOT import from any other layer.

Invariants enforced:
    - Datetimes are written as UTC and always read back timezone-aware, even
      on backends (SQLite) that drop tzinfo.
    - Naive datetimes are rejected on write; every timestamp comes from an
      injected Clock and is aware.

Failure modes:
    - ValueError on a naive datetime bind parameter.
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import DateTime, String
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - process_bind_param: UUID -> str on INSERT/UPDATE.
        - process_result_value: str -> UUID on SELECT.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return value if isinstance(value, UUID) else UUID(value)
        return None


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime normalised to UTC on the way in and out."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime not allowed: {value!r}")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
