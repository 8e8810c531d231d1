"""
Module: overtime_kernel.models.user
Responsibility: Directory rows used to resolve display names and roles.
Architecture position: Kernel > Models.  May import from db/ only.

Users are keyed by the identity provider's string id, not a generated
UUID; every ``*_id`` user reference elsewhere in the schema is that string.
"""

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from overtime_kernel.db.base import TrackedBase


class UserModel(TrackedBase):
    """A member of an organization."""

    __tablename__ = "users"

    __table_args__ = (
        Index("ix_users_org_role", "organization_id", "role"),
    )

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    organization_id: Mapped[str] = mapped_column(String(128), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str | None] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<User {self.id} org={self.organization_id} role={self.role}>"
