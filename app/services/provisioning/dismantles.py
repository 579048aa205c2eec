from __future__ import annotations

from sqlalchemy.orm import Session

from app.models.provisioning import Dismantle, Installation, InstallationStatus, RequestStatus
from app.queries.provisioning import DismantleQuery
from app.schemas.provisioning import DismantleCreate
from app.services.common import apply_ordering, apply_pagination, coerce_id
from app.services.provisioning._core import (
    TransitionResult,
    guarded_read,
    record_created,
    record_transition,
    storage_guard,
)
from app.services.provisioning.errors import InstallationNotFound, PreconditionFailed, RecordNotFound
from app.services.response import ListResponseMixin

KIND = "dismantle"


class DismantleService(ListResponseMixin):
    def __init__(self, db: Session):
        self.db = db

    def create(self, payload: DismantleCreate) -> Dismantle:
        with storage_guard(self.db, "load_installation"):
            installation = self.db.get(Installation, payload.installation_id)
        if not installation:
            raise InstallationNotFound(payload.installation_id)
        if installation.status == InstallationStatus.dismantled:
            raise PreconditionFailed(f"Installation {installation.id} is already dismantled")

        dismantle = Dismantle(
            installation_id=installation.id,
            location=installation.location,
            provider_id=installation.provider_id,
            provider=installation.provider,
            status=RequestStatus.pending,
            batch_id=payload.batch_id,
        )
        with storage_guard(self.db, "create_dismantle"):
            flagged = (
                self.db.query(Installation)
                .filter(Installation.id == installation.id)
                .filter(Installation.dismantle_status.is_(False))
                .filter(Installation.status != InstallationStatus.dismantled)
                .update({Installation.dismantle_status: True}, synchronize_session=False)
            )
            if not flagged:
                raise PreconditionFailed(f"Installation {installation.id} already has an outstanding dismantle")
            self.db.add(dismantle)
            self.db.commit()
        self.db.refresh(dismantle)
        record_created(KIND, dismantle.id, dismantle.batch_id)
        return dismantle

    @guarded_read("get_dismantle")
    def get(self, dismantle_id: int | str) -> Dismantle:
        dismantle = self.db.get(Dismantle, coerce_id(dismantle_id, "dismantle_id"))
        if not dismantle:
            raise RecordNotFound(f"Dismantle {dismantle_id} not found")
        return dismantle

    @guarded_read("list_dismantles")
    def list(
        self,
        status: str | None = None,
        installation_id: int | None = None,
        batch_id: str | None = None,
        order_by: str = "created_at",
        order_dir: str = "desc",
        limit: int = 50,
        offset: int = 0,
    ) -> list[Dismantle]:
        query = (
            DismantleQuery(self.db)
            .by_status(status)
            .by_installation(installation_id)
            .by_batch(batch_id)
            .query()
        )
        query = apply_ordering(query, order_by, order_dir, DismantleQuery.ordering_fields)
        return apply_pagination(query, limit, offset).all()

    def approve(self, dismantle_id: int | str) -> TransitionResult:
        dismantle = self.get(dismantle_id)
        with storage_guard(self.db, "approve_dismantle"):
            count = (
                self.db.query(Dismantle)
                .filter(Dismantle.id == dismantle.id)
                .filter(Dismantle.status == RequestStatus.pending)
                .update({Dismantle.status: RequestStatus.approved}, synchronize_session=False)
            )
            if count:
                retired = (
                    self.db.query(Installation)
                    .filter(Installation.id == dismantle.installation_id)
                    .update(
                        {
                            Installation.status: InstallationStatus.dismantled,
                            Installation.dismantle_status: False,
                        },
                        synchronize_session=False,
                    )
                )
                if not retired:
                    self.db.rollback()
                    raise InstallationNotFound(dismantle.installation_id)
            self.db.commit()

        dismantle = self.get(dismantle.id)
        status = dismantle.status.value
        record_transition(KIND, "approve", dismantle.id, bool(count), status)
        if count:
            return TransitionResult(kind=KIND, id=dismantle.id, updated=True, status=status)
        return TransitionResult(
            kind=KIND,
            id=dismantle.id,
            updated=False,
            status=status,
            detail=f"Dismantle {dismantle.id} is {status}, not pending",
        )
