"""
BaseService -- common constructor and flush contract for kernel services.

Responsibility:
    Every overtime service receives a SQLAlchemy ``Session`` and a
    ``Clock`` from the caller.  Services persist with ``session.flush()``
    and never commit or roll back; the API facade or the scheduler owns
    the transaction.

Invariants enforced:
    - Version-checked flushes: a ``StaleDataError`` raised by SQLAlchemy's
      ``version_id_col`` check surfaces as ``OptimisticLockError`` so the
      caller can tell a lost race from a bug.
"""

from abc import ABC
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from overtime_kernel.domain.clock import Clock, SystemClock
from overtime_kernel.exceptions import OptimisticLockError


class BaseService(ABC):
    """
    Abstract base class for kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()

    def _flush(self, entity_type: str, entity_id: UUID | str | None) -> None:
        """Flush pending changes, translating version conflicts."""
        try:
            self.session.flush()
        except StaleDataError as exc:
            raise OptimisticLockError(entity_type, str(entity_id)) from exc
