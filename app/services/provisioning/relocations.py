from __future__ import annotations

from sqlalchemy.orm import Session

from app.models.provisioning import Installation, InstallationStatus, Relocation, RequestStatus
from app.queries.provisioning import RelocationQuery
from app.schemas.provisioning import RelocationCreate
from app.services.common import apply_ordering, apply_pagination, coerce_id
from app.services.provisioning._core import (
    TransitionResult,
    guarded_read,
    province_for,
    record_created,
    record_transition,
    storage_guard,
)
from app.services.provisioning.errors import InstallationNotFound, PreconditionFailed, RecordNotFound
from app.services.response import ListResponseMixin

KIND = "relocation"


class RelocationService(ListResponseMixin):
    def __init__(self, db: Session):
        self.db = db

    def create(self, payload: RelocationCreate) -> Relocation:
        with storage_guard(self.db, "load_installation"):
            installation = self.db.get(Installation, payload.installation_id)
        if not installation:
            raise InstallationNotFound(payload.installation_id)
        if installation.status == InstallationStatus.dismantled:
            raise PreconditionFailed(f"Installation {installation.id} is dismantled")

        relocation = Relocation(
            installation_id=installation.id,
            old_location=installation.location,
            new_location=payload.new_location,
            old_address=installation.address,
            new_address=payload.new_address,
            old_area=installation.area,
            new_area=payload.new_area,
            old_communication=installation.communication,
            new_communication=payload.new_communication,
            old_contact=installation.contact,
            new_contact=payload.new_contact,
            provider_id=installation.provider_id,
            provider=installation.provider,
            status=RequestStatus.pending,
            batch_id=payload.batch_id,
        )
        with storage_guard(self.db, "create_relocation"):
            flagged = (
                self.db.query(Installation)
                .filter(Installation.id == installation.id)
                .filter(Installation.relocation_status.is_(False))
                .filter(Installation.status != InstallationStatus.dismantled)
                .update({Installation.relocation_status: True}, synchronize_session=False)
            )
            if not flagged:
                raise PreconditionFailed(f"Installation {installation.id} already has an outstanding relocation")
            self.db.add(relocation)
            self.db.commit()
        self.db.refresh(relocation)
        record_created(KIND, relocation.id, relocation.batch_id)
        return relocation

    @guarded_read("get_relocation")
    def get(self, relocation_id: int | str) -> Relocation:
        relocation = self.db.get(Relocation, coerce_id(relocation_id, "relocation_id"))
        if not relocation:
            raise RecordNotFound(f"Relocation {relocation_id} not found")
        return relocation

    @guarded_read("list_relocations")
    def list(
        self,
        status: str | None = None,
        installation_id: int | None = None,
        batch_id: str | None = None,
        order_by: str = "created_at",
        order_dir: str = "desc",
        limit: int = 50,
        offset: int = 0,
    ) -> list[Relocation]:
        query = (
            RelocationQuery(self.db)
            .by_status(status)
            .by_installation(installation_id)
            .by_batch(batch_id)
            .query()
        )
        query = apply_ordering(query, order_by, order_dir, RelocationQuery.ordering_fields)
        return apply_pagination(query, limit, offset).all()

    def approve(self, relocation_id: int | str) -> TransitionResult:
        """Approve a relocation and move its installation in one transaction.

        An installation dismantled while the relocation was pending is left
        untouched and the approval is rolled back with :class:`PreconditionFailed`.
        """
        relocation = self.get(relocation_id)
        with storage_guard(self.db, "approve_relocation"):
            count = (
                self.db.query(Relocation)
                .filter(Relocation.id == relocation.id)
                .filter(Relocation.status == RequestStatus.pending)
                .update({Relocation.status: RequestStatus.approved}, synchronize_session=False)
            )
            if count:
                values = {
                    Installation.location: relocation.new_location,
                    Installation.address: relocation.new_address,
                    Installation.area: relocation.new_area,
                    Installation.communication: relocation.new_communication,
                    Installation.relocation_status: False,
                }
                if relocation.new_contact:
                    values[Installation.contact] = relocation.new_contact
                province = province_for(self.db, relocation.new_location)
                if province:
                    values[Installation.province] = province
                moved = (
                    self.db.query(Installation)
                    .filter(Installation.id == relocation.installation_id)
                    .filter(Installation.status != InstallationStatus.dismantled)
                    .update(values, synchronize_session=False)
                )
                if not moved:
                    found = (
                        self.db.query(Installation.id)
                        .filter(Installation.id == relocation.installation_id)
                        .first()
                    )
                    self.db.rollback()
                    if found is None:
                        raise InstallationNotFound(relocation.installation_id)
                    raise PreconditionFailed(f"Installation {relocation.installation_id} is dismantled")
            self.db.commit()

        relocation = self.get(relocation.id)
        status = relocation.status.value
        record_transition(KIND, "approve", relocation.id, bool(count), status)
        if count:
            return TransitionResult(kind=KIND, id=relocation.id, updated=True, status=status)
        return TransitionResult(
            kind=KIND,
            id=relocation.id,
            updated=False,
            status=status,
            detail=f"Relocation {relocation.id} is {status}, not pending",
        )
