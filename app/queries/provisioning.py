"""Query builders for installation, relocation and dismantle requests."""

from __future__ import annotations

from typing import Any, ClassVar

from app.models.provisioning import (
    CommunicationType,
    Dismantle,
    Installation,
    InstallationStatus,
    Relocation,
    RequestStatus,
)
from app.queries.base import BaseQuery
from app.services.common import coerce_id, validate_enum

ACTIVE_INSTALLATION_STATUSES = (InstallationStatus.pending, InstallationStatus.approved)


class InstallationQuery(BaseQuery[Installation]):
    """Query builder for Installation model.

    Usage:
        installations = (
            InstallationQuery(db)
            .by_province("DKI Jakarta")
            .by_status(InstallationStatus.pending)
            .order_by("created_at", "desc")
            .all()
        )
    """

    model_class = Installation
    ordering_fields: ClassVar[dict[str, Any]] = {
        "id": Installation.id,
        "created_at": Installation.created_at,
        "updated_at": Installation.updated_at,
        "status": Installation.status,
        "location": Installation.location,
        "batch_id": Installation.batch_id,
        "price": Installation.price,
        "days": Installation.days,
    }

    def by_status(self, status: InstallationStatus | str | None) -> InstallationQuery:
        if not status:
            return self
        clone = self._clone()
        clone._query = clone._query.filter(
            Installation.status == validate_enum(status, InstallationStatus, "status")
        )
        return clone

    def active(self) -> InstallationQuery:
        """Installations still holding provider capacity (pending or approved)."""
        clone = self._clone()
        clone._query = clone._query.filter(Installation.status.in_(ACTIVE_INSTALLATION_STATUSES))
        return clone

    def by_provider(self, provider_id: int | str | None) -> InstallationQuery:
        if provider_id is None:
            return self
        clone = self._clone()
        clone._query = clone._query.filter(Installation.provider_id == coerce_id(provider_id, "provider_id"))
        return clone

    def by_province(self, province: str | None) -> InstallationQuery:
        if not province:
            return self
        clone = self._clone()
        clone._query = clone._query.filter(Installation.province == province)
        return clone

    def by_communication(self, communication: CommunicationType | str | None) -> InstallationQuery:
        if not communication:
            return self
        clone = self._clone()
        clone._query = clone._query.filter(
            Installation.communication == validate_enum(communication, CommunicationType, "communication")
        )
        return clone

    def by_batch(self, batch_id: str | None) -> InstallationQuery:
        if not batch_id:
            return self
        clone = self._clone()
        clone._query = clone._query.filter(Installation.batch_id == batch_id)
        return clone


class RelocationQuery(BaseQuery[Relocation]):
    model_class = Relocation
    ordering_fields: ClassVar[dict[str, Any]] = {
        "id": Relocation.id,
        "created_at": Relocation.created_at,
        "updated_at": Relocation.updated_at,
        "status": Relocation.status,
        "batch_id": Relocation.batch_id,
    }

    def by_status(self, status: RequestStatus | str | None) -> RelocationQuery:
        if not status:
            return self
        clone = self._clone()
        clone._query = clone._query.filter(Relocation.status == validate_enum(status, RequestStatus, "status"))
        return clone

    def by_installation(self, installation_id: int | str | None) -> RelocationQuery:
        if installation_id is None:
            return self
        clone = self._clone()
        clone._query = clone._query.filter(
            Relocation.installation_id == coerce_id(installation_id, "installation_id")
        )
        return clone

    def by_batch(self, batch_id: str | None) -> RelocationQuery:
        if not batch_id:
            return self
        clone = self._clone()
        clone._query = clone._query.filter(Relocation.batch_id == batch_id)
        return clone


class DismantleQuery(BaseQuery[Dismantle]):
    model_class = Dismantle
    ordering_fields: ClassVar[dict[str, Any]] = {
        "id": Dismantle.id,
        "created_at": Dismantle.created_at,
        "updated_at": Dismantle.updated_at,
        "status": Dismantle.status,
        "batch_id": Dismantle.batch_id,
    }

    def by_status(self, status: RequestStatus | str | None) -> DismantleQuery:
        if not status:
            return self
        clone = self._clone()
        clone._query = clone._query.filter(Dismantle.status == validate_enum(status, RequestStatus, "status"))
        return clone

    def by_installation(self, installation_id: int | str | None) -> DismantleQuery:
        if installation_id is None:
            return self
        clone = self._clone()
        clone._query = clone._query.filter(
            Dismantle.installation_id == coerce_id(installation_id, "installation_id")
        )
        return clone

    def by_batch(self, batch_id: str | None) -> DismantleQuery:
        if not batch_id:
            return self
        clone = self._clone()
        clone._query = clone._query.filter(Dismantle.batch_id == batch_id)
        return clone
