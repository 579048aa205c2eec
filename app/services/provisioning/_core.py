"""Shared helpers for request lifecycle services."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.logging import get_logger
from app.models.catalog import Location
from app.services.provisioning.errors import PreconditionFailed, StorageError
from app.services.provisioning.observability import LIFECYCLE_TRANSITIONS

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a guarded status transition.

    ``updated`` is False when the record was no longer in the expected
    status, which is the normal result of losing a concurrent approval.
    """

    kind: str
    id: int
    updated: bool
    status: str | None = None
    detail: str | None = None

    def raise_for_precondition(self) -> TransitionResult:
        if not self.updated:
            raise PreconditionFailed(self.detail or f"{self.kind.capitalize()} {self.id} was not changed")
        return self


@contextmanager
def storage_guard(db: Session, action: str) -> Iterator[None]:
    """Roll back and surface database faults as :class:`StorageError`."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        LIFECYCLE_TRANSITIONS.labels(kind="storage", action=action, outcome="error").inc()
        logger.exception("storage_failure action=%s", action)
        raise StorageError(f"Storage failure during {action}") from exc


def guarded_read(action: str) -> Callable:
    """Run a method of an object holding ``self.db`` under :func:`storage_guard`."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            with storage_guard(self.db, action):
                return func(self, *args, **kwargs)

        return wrapper

    return decorator


def record_transition(kind: str, action: str, record_id: int, updated: bool, status: str | None) -> None:
    outcome = "updated" if updated else "no_change"
    LIFECYCLE_TRANSITIONS.labels(kind=kind, action=action, outcome=outcome).inc()
    logger.info("%s_%s id=%s outcome=%s status=%s", kind, action, record_id, outcome, status)


def record_created(kind: str, record_id: int, batch_id: str) -> None:
    LIFECYCLE_TRANSITIONS.labels(kind=kind, action="create", outcome="created").inc()
    logger.info("%s_created id=%s batch_id=%s", kind, record_id, batch_id)


def province_for(db: Session, location: str) -> str | None:
    with storage_guard(db, "province_lookup"):
        return db.query(Location.province).filter(Location.location == location).scalar()
