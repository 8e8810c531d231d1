"""
Module: overtime_kernel.models.notification
Responsibility: In-app notification inbox rows written by the in-app sink.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Rows are append-only from the core's point of view; ``read`` is
      flipped by the client, never by the overtime services.
"""

from typing import Any

from sqlalchemy import JSON, Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from overtime_kernel.db.base import TrackedBase


class NotificationModel(TrackedBase):
    """One in-app notification for one user."""

    __tablename__ = "notifications"

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "read"),
        Index("ix_notifications_org_type", "organization_id", "type"),
    )

    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    organization_id: Mapped[str] = mapped_column(String(128), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="NORMAL")
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Notification {self.type} -> {self.user_id}>"
