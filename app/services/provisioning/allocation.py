"""Provider allocation engine.

Ranks the providers covering a location and returns the one that will serve
an installation together with its contract terms. The ranking rules are
fixed and versioned by :data:`ALLOCATION_RULESET`:

1. drop saturated providers (active installations >= threshold)
2. keep providers with a coverage row for the location
3. lowest SLA days
4. lowest price among the fastest providers
5. lowest active load in the location's province, then globally
6. first candidate in price/SLA order

The engine only reads from its repository, so it is safe to call
concurrently and never retries: the same catalog state always yields the
same decision.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from app.config import settings
from app.logging import get_logger
from app.services.provisioning.errors import (
    NoCoverage,
    NoPricingAvailable,
    NoServiceableProvider,
    ProviderNotFound,
    ProvisioningError,
)
from app.services.provisioning.observability import ALLOCATION_DECISIONS, ALLOCATION_LATENCY
from app.services.provisioning.repository import CatalogRepository, LocationRow, PriceRow

logger = get_logger(__name__)

ALLOCATION_RULESET = "sla-price-load/v1"
DEFAULT_SATURATION_THRESHOLD = 10


@dataclass(frozen=True)
class AllocationDecision:
    provider_id: int
    provider_name: str
    price_id: int | None
    price: int | None
    days: int | None
    ruleset: str = ALLOCATION_RULESET

    @property
    def is_fixed_carrier(self) -> bool:
        return self.price_id is None


class AllocationEngine:
    def __init__(
        self,
        repository: CatalogRepository,
        saturation_threshold: int = DEFAULT_SATURATION_THRESHOLD,
        m2m_provider_id: int = 99,
        m2m_provider_name: str = "M2M",
        coverage_requires_availability: bool = False,
    ):
        self.repository = repository
        self.saturation_threshold = saturation_threshold
        self.m2m_provider_id = m2m_provider_id
        self.m2m_provider_name = m2m_provider_name
        self.coverage_requires_availability = coverage_requires_availability

    @classmethod
    def from_settings(cls, repository: CatalogRepository) -> AllocationEngine:
        return cls(
            repository,
            saturation_threshold=settings.allocation_saturation_threshold,
            m2m_provider_id=settings.m2m_provider_id,
            m2m_provider_name=settings.m2m_provider_name,
            coverage_requires_availability=settings.coverage_requires_availability,
        )

    def is_fixed_carrier(self, provider_id: int | None) -> bool:
        return provider_id is not None and provider_id == self.m2m_provider_id

    def fixed_carrier_decision(self) -> AllocationDecision:
        return AllocationDecision(
            provider_id=self.m2m_provider_id,
            provider_name=self.m2m_provider_name,
            price_id=None,
            price=None,
            days=None,
        )

    def allocate(
        self,
        location: str,
        exclude_saturated: bool = True,
        pinned_provider_id: int | None = None,
    ) -> AllocationDecision:
        """Resolve the provider and contract terms for ``location``.

        Raises an :class:`AllocationError` subclass when no provider can be
        chosen, or :class:`StorageError` when the catalog cannot be read.
        """
        if self.is_fixed_carrier(pinned_provider_id):
            mode = "fixed_carrier"
        elif pinned_provider_id is not None:
            mode = "pinned"
        else:
            mode = "ranked"
        started = time.perf_counter()
        try:
            if mode == "fixed_carrier":
                decision = self.fixed_carrier_decision()
            else:
                decision = self._resolve(location, exclude_saturated, pinned_provider_id)
        except ProvisioningError as exc:
            ALLOCATION_DECISIONS.labels(mode=mode, outcome=exc.code).inc()
            logger.info(
                "allocation_failed location=%s mode=%s pinned=%s code=%s detail=%s",
                location,
                mode,
                pinned_provider_id,
                exc.code,
                exc.detail,
            )
            raise
        finally:
            ALLOCATION_LATENCY.labels(mode=mode).observe(time.perf_counter() - started)

        ALLOCATION_DECISIONS.labels(mode=mode, outcome="allocated").inc()
        logger.info(
            "allocation_resolved location=%s mode=%s provider_id=%s days=%s price=%s ruleset=%s",
            location,
            mode,
            decision.provider_id,
            decision.days,
            decision.price,
            decision.ruleset,
        )
        return decision

    def _resolve(
        self,
        location: str,
        exclude_saturated: bool,
        pinned_provider_id: int | None,
    ) -> AllocationDecision:
        location_row = self.repository.get_location(location)
        if not location_row:
            raise NoCoverage(f"Unknown location {location!r}")

        providers = {row.provider_id: row.name for row in self.repository.find_providers()}
        saturated: set[int] = set()
        if pinned_provider_id is not None:
            if pinned_provider_id not in providers:
                raise ProviderNotFound(f"Provider {pinned_provider_id} not found")
            candidates = [pinned_provider_id]
        else:
            candidates = [pid for pid in providers if not self.is_fixed_carrier(pid)]
            if exclude_saturated:
                saturated = {pid for pid in candidates if self._is_saturated(pid)}
                candidates = [pid for pid in candidates if pid not in saturated]

        covered = self._covered(location_row, candidates, saturated)

        sla_rows = sorted(self.repository.find_sla(location_row.name, covered), key=lambda row: row.days)
        if not sla_rows:
            raise NoServiceableProvider(f"No SLA defined for providers covering {location_row.name!r}")
        min_days = sla_rows[0].days
        fastest: list[int] = []
        for row in sla_rows:
            if row.days == min_days and row.provider_id not in fastest:
                fastest.append(row.provider_id)

        price_rows = sorted(self.repository.find_price(location_row.name, fastest), key=lambda row: row.price)
        if not price_rows:
            raise NoPricingAvailable(f"No price defined for the fastest providers at {location_row.name!r}")
        cheapest: list[PriceRow] = []
        for row in price_rows:
            if row.price == price_rows[0].price and row.provider_id not in {c.provider_id for c in cheapest}:
                cheapest.append(row)

        chosen = cheapest[0] if len(cheapest) == 1 else self._least_loaded(cheapest, location_row.province)
        return AllocationDecision(
            provider_id=chosen.provider_id,
            provider_name=providers[chosen.provider_id],
            price_id=chosen.price_id,
            price=chosen.price,
            days=min_days,
        )

    def _is_saturated(self, provider_id: int) -> bool:
        return self.repository.count_active_by_provider(provider_id) >= self.saturation_threshold

    def _covered(self, location: LocationRow, candidates: list[int], saturated: set[int]) -> list[int]:
        eligible = {
            row.provider_id
            for row in self.repository.find_coverage(location.name)
            if row.available or not self.coverage_requires_availability
        }
        covered = [pid for pid in candidates if pid in eligible]
        if not covered:
            if eligible and eligible <= saturated:
                raise NoCoverage(f"All providers covering {location.name!r} are saturated")
            raise NoCoverage(f"No provider covers {location.name!r}")
        return covered

    def _least_loaded(self, tied: list[PriceRow], province: str | None) -> PriceRow:
        remaining = tied
        for scope in (province, None):
            counts = {
                row.provider_id: self.repository.count_active_by_provider(row.provider_id, scope)
                for row in remaining
            }
            lowest = min(counts.values())
            remaining = [row for row in remaining if counts[row.provider_id] == lowest]
            if len(remaining) == 1:
                break
        return remaining[0]
