"""
Authority capability (``overtime_kernel.domain.authority``).

The workflow never inspects role names.  It asks an injected
``Authorizer`` whether a user may take executive decisions inside an
organization, so the role taxonomy lives entirely in configuration.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

DEFAULT_EXECUTIVE_ROLES: frozenset[str] = frozenset({
    "EXECUTIVE_PRODUCER",
    "PRODUCER",
    "ACCOUNTING",
    "ADMIN",
    "OWNER",
})


@runtime_checkable
class Authorizer(Protocol):
    """Decides whether a user holds executive approval authority."""

    def is_executive(self, organization_id: str, user_id: str) -> bool: ...


def normalize_role(role: str | None) -> str:
    return (role or "").strip().upper()
