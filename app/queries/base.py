"""Shared plumbing for the request query builders.

Installation, relocation and dismantle builders add their own filters on top.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Generic, Self, TypeVar

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseQuery(Generic[T]):
    """Immutable, chainable filter builder over one request table.

    Every filter returns a clone, so a partially built query can be reused
    (the load index counts the same active filter per province and globally).
    Subclasses set ``model_class`` and ``ordering_fields``; the latter also
    whitelists the ``order_by`` values accepted by the list endpoints.
    """

    model_class: type[T]
    ordering_fields: ClassVar[dict[str, Any]] = {}

    def __init__(self, db: Session):
        self.db = db
        self._query: Query = db.query(self.model_class)

    def _clone(self) -> Self:
        """Copy the builder so filters never mutate a shared instance."""
        new = self.__class__.__new__(self.__class__)
        new.db = self.db
        new._query = self._query
        return new

    def order_by(self, field: str, direction: str = "asc") -> Self:
        """Order by a whitelisted field; unknown names are ignored."""
        clone = self._clone()
        column = self.ordering_fields.get(field)
        if column is not None:
            if direction.lower() == "desc":
                clone._query = clone._query.order_by(desc(column))
            else:
                clone._query = clone._query.order_by(asc(column))
        return clone

    def all(self) -> list[T]:
        return self._query.all()

    def count(self) -> int:
        """Row count; the load index relies on this."""
        return self._query.count()

    def exists(self) -> bool:
        """True when at least one row matches, without loading it."""
        return self.db.query(self._query.exists()).scalar()

    def query(self) -> Query:
        """Hand the query to ``apply_ordering`` / ``apply_pagination``."""
        return self._query
