from __future__ import annotations

from sqlalchemy.orm import Session

from app.models.provisioning import CommunicationType, Installation, InstallationStatus
from app.queries.provisioning import InstallationQuery
from app.schemas.provisioning import InstallationCreate, InstallationOverride
from app.services.common import apply_ordering, apply_pagination, coerce_id
from app.services.provisioning._core import (
    TransitionResult,
    guarded_read,
    province_for,
    record_created,
    record_transition,
    storage_guard,
)
from app.services.provisioning.allocation import AllocationDecision, AllocationEngine
from app.services.provisioning.errors import InstallationNotFound
from app.services.response import ListResponseMixin

KIND = "installation"


def _terms(decision: AllocationDecision) -> dict:
    return {
        "provider_id": decision.provider_id,
        "provider": decision.provider_name,
        "price_id": decision.price_id,
        "price": decision.price,
        "days": decision.days,
        "communication": CommunicationType.M2M if decision.is_fixed_carrier else CommunicationType.VSAT,
    }


class InstallationService(ListResponseMixin):
    def __init__(self, db: Session, allocator: AllocationEngine):
        self.db = db
        self.allocator = allocator

    def preview(
        self,
        location: str,
        provider_id: int | None = None,
        exclude_saturated: bool = True,
    ) -> AllocationDecision:
        """Run allocation for a location without persisting anything."""
        return self.allocator.allocate(
            location,
            exclude_saturated=exclude_saturated,
            pinned_provider_id=provider_id,
        )

    def create(self, payload: InstallationCreate) -> Installation:
        if payload.communication == CommunicationType.M2M:
            decision = self.allocator.allocate(
                payload.location, pinned_provider_id=self.allocator.m2m_provider_id
            )
        else:
            decision = self.allocator.allocate(payload.location, exclude_saturated=True)

        installation = Installation(
            location=payload.location,
            address=payload.address,
            contact=payload.contact,
            area=payload.area,
            province=province_for(self.db, payload.location),
            status=InstallationStatus.pending,
            batch_id=payload.batch_id,
            **_terms(decision),
        )
        with storage_guard(self.db, "create_installation"):
            self.db.add(installation)
            self.db.commit()
        self.db.refresh(installation)
        record_created(KIND, installation.id, installation.batch_id)
        return installation

    @guarded_read("get_installation")
    def get(self, installation_id: int | str) -> Installation:
        installation = self.db.get(Installation, coerce_id(installation_id, "installation_id"))
        if not installation:
            raise InstallationNotFound(installation_id)
        return installation

    @guarded_read("list_installations")
    def list(
        self,
        status: str | None = None,
        province: str | None = None,
        provider_id: int | None = None,
        communication: str | None = None,
        batch_id: str | None = None,
        order_by: str = "created_at",
        order_dir: str = "desc",
        limit: int = 50,
        offset: int = 0,
    ) -> list[Installation]:
        query = (
            InstallationQuery(self.db)
            .by_status(status)
            .by_province(province)
            .by_provider(provider_id)
            .by_communication(communication)
            .by_batch(batch_id)
            .query()
        )
        query = apply_ordering(query, order_by, order_dir, InstallationQuery.ordering_fields)
        return apply_pagination(query, limit, offset).all()

    def approve(self, installation_id: int | str) -> TransitionResult:
        record_id = coerce_id(installation_id, "installation_id")
        with storage_guard(self.db, "approve_installation"):
            count = (
                self.db.query(Installation)
                .filter(Installation.id == record_id)
                .filter(Installation.status == InstallationStatus.pending)
                .update({Installation.status: InstallationStatus.approved}, synchronize_session=False)
            )
            self.db.commit()
        return self._result("approve", record_id, bool(count))

    def override(self, installation_id: int | str, payload: InstallationOverride) -> TransitionResult:
        """Approve a pending installation with a caller-chosen provider.

        The new terms and the ``approved`` status land in one UPDATE guarded
        by ``status = pending``; losing that race reports no change.
        """
        installation = self.get(installation_id)
        if installation.status != InstallationStatus.pending:
            return self._result("override", installation.id, False)

        decision = self.allocator.allocate(
            payload.location or installation.location,
            exclude_saturated=False,
            pinned_provider_id=payload.provider_id,
        )
        values = {getattr(Installation, key): value for key, value in _terms(decision).items()}
        values[Installation.status] = InstallationStatus.approved
        with storage_guard(self.db, "override_installation"):
            count = (
                self.db.query(Installation)
                .filter(Installation.id == installation.id)
                .filter(Installation.status == InstallationStatus.pending)
                .update(values, synchronize_session=False)
            )
            self.db.commit()
        return self._result("override", installation.id, bool(count))

    def _result(self, action: str, record_id: int, updated: bool) -> TransitionResult:
        installation = self.get(record_id)
        status = installation.status.value
        record_transition(KIND, action, record_id, updated, status)
        if updated:
            return TransitionResult(kind=KIND, id=record_id, updated=True, status=status)
        return TransitionResult(
            kind=KIND,
            id=record_id,
            updated=False,
            status=status,
            detail=f"Installation {record_id} is {status}, not pending",
        )
