"""
UserDirectory -- identity lookups and the executive-role authorizer.

Responsibility:
    Resolves display names for notifications and snapshots, lists the
    members of an organization, and answers ``is_executive`` for the
    workflow through ``DirectoryAuthorizer``.

Architecture position:
    Kernel > Services.  Read-only over the ``users`` table.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from overtime_kernel.domain.authority import DEFAULT_EXECUTIVE_ROLES, normalize_role
from overtime_kernel.models.user import UserModel


@dataclass(frozen=True)
class DirectoryUser:
    user_id: str
    organization_id: str
    display_name: str | None
    email: str | None
    role: str | None


class UserDirectory:
    """Read access to organization members."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, user_id: str) -> DirectoryUser | None:
        model = self._session.get(UserModel, user_id)
        if model is None:
            return None
        return DirectoryUser(
            user_id=model.id,
            organization_id=model.organization_id,
            display_name=model.display_name,
            email=model.email,
            role=model.role,
        )

    def display_name(self, user_id: str, fallback: str = "Unknown") -> str:
        """Best human-readable label for ``user_id``: name, then email, then fallback."""
        user = self.get(user_id)
        if user is None:
            return fallback
        return user.display_name or user.email or fallback

    def member_ids(self, organization_id: str) -> list[str]:
        stmt = (
            select(UserModel.id)
            .where(UserModel.organization_id == organization_id)
            .order_by(UserModel.id)
        )
        return list(self._session.scalars(stmt))


class DirectoryAuthorizer:
    """Authorizer backed by the ``role`` column of the user directory."""

    def __init__(
        self,
        directory: UserDirectory,
        executive_roles: Iterable[str] = DEFAULT_EXECUTIVE_ROLES,
    ) -> None:
        self._directory = directory
        self._executive_roles = frozenset(normalize_role(r) for r in executive_roles)

    def is_executive(self, organization_id: str, user_id: str) -> bool:
        user = self._directory.get(user_id)
        if user is None or user.organization_id != organization_id:
            return False
        return normalize_role(user.role) in self._executive_roles
