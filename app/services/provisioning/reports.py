"""Request and provider load counters."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.catalog import Provider
from app.models.provisioning import Dismantle, Installation, InstallationStatus, Relocation, RequestStatus
from app.queries.provisioning import ACTIVE_INSTALLATION_STATUSES
from app.services.provisioning._core import storage_guard


@dataclass(frozen=True)
class ProviderLoad:
    provider_id: int
    provider: str
    active: int
    saturated: bool


def _coerce_count(value: object) -> int:
    if value is None:
        return 0
    return int(value)


def summarize_status_rows(rows: Sequence[tuple[object, object]], statuses: type) -> dict[str, int]:
    counts = {status.value: 0 for status in statuses}
    total = 0
    for status, count in rows or []:
        key = status.value if isinstance(status, statuses) else str(status)
        value = _coerce_count(count)
        counts[key] = value
        total += value
    counts["total"] = total
    return counts


def request_counts(db: Session) -> dict[str, dict[str, int]]:
    with storage_guard(db, "request_counts"):
        return {
            "installation": summarize_status_rows(
                db.query(Installation.status, func.count(Installation.id)).group_by(Installation.status).all(),
                InstallationStatus,
            ),
            "relocation": summarize_status_rows(
                db.query(Relocation.status, func.count(Relocation.id)).group_by(Relocation.status).all(),
                RequestStatus,
            ),
            "dismantle": summarize_status_rows(
                db.query(Dismantle.status, func.count(Dismantle.id)).group_by(Dismantle.status).all(),
                RequestStatus,
            ),
        }


def _active_counts(db: Session, province: str | None = None) -> dict:
    counts = db.query(Installation.provider_id, func.count(Installation.id)).filter(
        Installation.status.in_(ACTIVE_INSTALLATION_STATUSES)
    )
    if province:
        counts = counts.filter(Installation.province == province)
    return dict(counts.group_by(Installation.provider_id).all())


def provider_load(db: Session, saturation_threshold: int, province: str | None = None) -> list[ProviderLoad]:
    """Active (pending or approved) installations per provider.

    ``active`` honours ``province``; ``saturated`` always uses the global count
    because saturation is checked globally during allocation.
    """
    with storage_guard(db, "provider_load"):
        active = _active_counts(db, province)
        overall = _active_counts(db) if province else active
        providers = db.query(Provider).order_by(Provider.id.asc()).all()
    return [
        ProviderLoad(
            provider_id=provider.id,
            provider=provider.provider,
            active=_coerce_count(active.get(provider.id)),
            saturated=_coerce_count(overall.get(provider.id)) >= saturation_threshold,
        )
        for provider in providers
    ]
