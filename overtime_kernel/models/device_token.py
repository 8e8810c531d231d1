"""
Module: overtime_kernel.models.device_token
Responsibility: Push-notification device tokens registered per user.
Architecture position: Kernel > Models.  May import from db/ only.
"""

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from overtime_kernel.db.base import TrackedBase


class DeviceTokenModel(TrackedBase):
    __tablename__ = "device_tokens"

    __table_args__ = (
        UniqueConstraint("token", name="uq_device_tokens_token"),
        Index("ix_device_tokens_user_active", "user_id", "is_active"),
    )

    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    token: Mapped[str] = mapped_column(String(512), nullable=False)
    platform: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<DeviceToken user={self.user_id} active={self.is_active}>"
