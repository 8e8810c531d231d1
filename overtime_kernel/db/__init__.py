"""Database layer: declarative base, column types, engine and session management."""

from overtime_kernel.db.base import Base, TrackedBase
from overtime_kernel.db.engine import (
    build_engine,
    create_tables,
    get_session,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)

__all__ = [
    "Base",
    "TrackedBase",
    "build_engine",
    "create_tables",
    "get_session",
    "get_session_factory",
    "init_engine_from_url",
    "session_scope",
]
