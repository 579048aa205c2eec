"""Catalog and load-index access for the allocation engine.

The engine depends on :class:`CatalogRepository` only; the SQLAlchemy
implementation is injected per session by the container.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.orm import Session

from app.models.catalog import Coverage, Location, Price, Provider, Sla
from app.queries.provisioning import InstallationQuery
from app.services.provisioning._core import guarded_read


@dataclass(frozen=True)
class ProviderRow:
    provider_id: int
    name: str


@dataclass(frozen=True)
class LocationRow:
    location_id: int
    name: str
    province: str


@dataclass(frozen=True)
class CoverageRow:
    provider_id: int
    available: bool


@dataclass(frozen=True)
class SlaRow:
    provider_id: int
    days: int


@dataclass(frozen=True)
class PriceRow:
    provider_id: int
    price_id: int
    price: int


class CatalogRepository(Protocol):
    def find_providers(self) -> list[ProviderRow]: ...

    def get_location(self, location_name: str) -> LocationRow | None: ...

    def find_coverage(self, location_name: str) -> list[CoverageRow]: ...

    def find_sla(self, location_name: str, provider_ids: Sequence[int]) -> list[SlaRow]: ...

    def find_price(self, location_name: str, provider_ids: Sequence[int]) -> list[PriceRow]: ...

    def count_active_by_provider(self, provider_id: int, province: str | None = None) -> int: ...


class SqlCatalogRepository:
    """Reads catalog tables and active installation counts through a Session.

    Database faults surface as :class:`StorageError`.
    """

    def __init__(self, db: Session):
        self.db = db

    @guarded_read("catalog_read")
    def find_providers(self) -> list[ProviderRow]:
        providers = self.db.query(Provider).order_by(Provider.id.asc()).all()
        return [ProviderRow(provider_id=p.id, name=p.provider) for p in providers]

    @guarded_read("catalog_read")
    def get_location(self, location_name: str) -> LocationRow | None:
        location = self.db.query(Location).filter(Location.location == location_name).first()
        if not location:
            return None
        return LocationRow(location_id=location.id, name=location.location, province=location.province)

    @guarded_read("catalog_read")
    def find_coverage(self, location_name: str) -> list[CoverageRow]:
        rows = (
            self.db.query(Coverage.provider_id, Coverage.avail)
            .join(Location, Location.id == Coverage.location_id)
            .filter(Location.location == location_name)
            .order_by(Coverage.provider_id.asc())
            .all()
        )
        return [CoverageRow(provider_id=provider_id, available=bool(avail)) for provider_id, avail in rows]

    @guarded_read("catalog_read")
    def find_sla(self, location_name: str, provider_ids: Sequence[int]) -> list[SlaRow]:
        if not provider_ids:
            return []
        rows = (
            self.db.query(Sla.provider_id, Sla.days)
            .join(Location, Location.id == Sla.location_id)
            .filter(Location.location == location_name)
            .filter(Sla.provider_id.in_(list(provider_ids)))
            .order_by(Sla.days.asc(), Sla.provider_id.asc())
            .all()
        )
        return [SlaRow(provider_id=provider_id, days=days) for provider_id, days in rows]

    @guarded_read("catalog_read")
    def find_price(self, location_name: str, provider_ids: Sequence[int]) -> list[PriceRow]:
        if not provider_ids:
            return []
        rows = (
            self.db.query(Price.provider_id, Price.id, Price.price)
            .join(Location, Location.id == Price.location_id)
            .filter(Location.location == location_name)
            .filter(Price.provider_id.in_(list(provider_ids)))
            .order_by(Price.price.asc(), Price.provider_id.asc())
            .all()
        )
        return [
            PriceRow(provider_id=provider_id, price_id=price_id, price=price)
            for provider_id, price_id, price in rows
        ]

    @guarded_read("load_index_read")
    def count_active_by_provider(self, provider_id: int, province: str | None = None) -> int:
        return InstallationQuery(self.db).active().by_provider(provider_id).by_province(province).count()
