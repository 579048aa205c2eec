"""Batch grouping queries.

Every read here is side-effect free: rows sharing a ``batch_id`` are grouped
and ranked in SQL, never pruned.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.models.provisioning import Dismantle, Installation, Relocation
from app.queries.provisioning import DismantleQuery, InstallationQuery, RelocationQuery
from app.schemas.provisioning import RequestKind
from app.services.common import apply_pagination
from app.services.provisioning._core import guarded_read

_MODELS = {
    RequestKind.installation: Installation,
    RequestKind.relocation: Relocation,
    RequestKind.dismantle: Dismantle,
}

_QUERIES = {
    RequestKind.installation: InstallationQuery,
    RequestKind.relocation: RelocationQuery,
    RequestKind.dismantle: DismantleQuery,
}


@dataclass(frozen=True)
class BatchSummary:
    batch_id: str
    kind: RequestKind
    record_id: int
    location: str
    status: str
    provider: str | None
    total: int
    created_at: datetime


def _kind(kind: RequestKind | str) -> RequestKind:
    try:
        return RequestKind(kind)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid kind") from None


def _status_rank(model):
    # Lifecycle order: pending first, then approved, then dismantled.
    members = list(model.status.type.enum_class)
    return case(
        *[(model.status == member, position) for position, member in enumerate(members)],
        else_=len(members),
    )


def _location(record) -> str:
    if isinstance(record, Relocation):
        return record.new_location
    return record.location


class BatchService:
    def __init__(self, db: Session):
        self.db = db

    @guarded_read("batch_summary")
    def summary(
        self,
        kind: RequestKind | str,
        batch_filter: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[BatchSummary]:
        """One representative row per batch, newest batches first.

        The representative is the most recently created row, with pending
        rows preferred over approved or dismantled ones on a tie.
        ``batch_filter`` is a case-insensitive substring match.
        """
        kind = _kind(kind)
        model = _MODELS[kind]
        ranked = self.db.query(
            model.id.label("record_id"),
            func.row_number()
            .over(
                partition_by=model.batch_id,
                order_by=[model.created_at.desc(), _status_rank(model).asc(), model.id.desc()],
            )
            .label("position"),
            func.count(model.id).over(partition_by=model.batch_id).label("total"),
        )
        if batch_filter and batch_filter.strip():
            ranked = ranked.filter(model.batch_id.icontains(batch_filter.strip(), autoescape=True))
        ranked = ranked.subquery()

        query = (
            self.db.query(model, ranked.c.total)
            .join(ranked, ranked.c.record_id == model.id)
            .filter(ranked.c.position == 1)
            .order_by(model.created_at.desc(), model.id.desc())
        )
        return [
            BatchSummary(
                batch_id=record.batch_id,
                kind=kind,
                record_id=record.id,
                location=_location(record),
                status=record.status.value,
                provider=record.provider,
                total=int(total),
                created_at=record.created_at,
            )
            for record, total in apply_pagination(query, limit, offset).all()
        ]

    @guarded_read("batch_rows")
    def rows(self, kind: RequestKind | str, batch_id: str) -> list:
        """Every record submitted under ``batch_id``."""
        return (
            _QUERIES[_kind(kind)](self.db)
            .by_batch(batch_id)
            .order_by("created_at", "asc")
            .order_by("id", "asc")
            .all()
        )

    @guarded_read("new_batch_id")
    def new_batch_id(self) -> str:
        """Issue a millisecond-timestamp batch id not yet used by any request."""
        candidate = int(time.time() * 1000)
        while self._in_use(str(candidate)):
            candidate += 1
        return str(candidate)

    def _in_use(self, batch_id: str) -> bool:
        return any(query(self.db).by_batch(batch_id).exists() for query in _QUERIES.values())
