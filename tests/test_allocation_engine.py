"""Tests for the provider allocation engine against an in-memory catalog."""

import pytest

from app.services.provisioning.allocation import ALLOCATION_RULESET, AllocationEngine
from app.services.provisioning.errors import (
    AllocationError,
    NoCoverage,
    NoPricingAvailable,
    NoServiceableProvider,
    ProviderNotFound,
)
from app.services.provisioning.repository import (
    CoverageRow,
    LocationRow,
    PriceRow,
    ProviderRow,
    SlaRow,
)

M2M = 99


class FakeCatalog:
    """Catalog repository backed by dicts, recording every call."""

    def __init__(self):
        self.providers = {1: "Alpha Net", 2: "Beta Link", 3: "Gamma Sat", M2M: "M2M Carrier"}
        self.locations = {"Jakarta": "DKI Jakarta", "Bandung": "Jawa Barat"}
        self.coverage: dict[tuple[str, int], bool] = {}
        self.sla: dict[tuple[str, int], int] = {}
        self.prices: dict[tuple[str, int], tuple[int, int]] = {}
        self.load: dict[tuple[int, str | None], int] = {}
        self.calls: list[str] = []

    def offer(self, location, provider_id, days=None, price=None, avail=True):
        self.coverage[(location, provider_id)] = avail
        if days is not None:
            self.sla[(location, provider_id)] = days
        if price is not None:
            self.prices[(location, provider_id)] = (1000 + provider_id, price)

    def find_providers(self):
        self.calls.append("find_providers")
        return [ProviderRow(provider_id=pid, name=name) for pid, name in sorted(self.providers.items())]

    def get_location(self, location_name):
        self.calls.append("get_location")
        if location_name not in self.locations:
            return None
        return LocationRow(location_id=1, name=location_name, province=self.locations[location_name])

    def find_coverage(self, location_name):
        self.calls.append("find_coverage")
        return [
            CoverageRow(provider_id=pid, available=avail)
            for (loc, pid), avail in sorted(self.coverage.items())
            if loc == location_name
        ]

    def find_sla(self, location_name, provider_ids):
        self.calls.append("find_sla")
        rows = [
            SlaRow(provider_id=pid, days=days)
            for (loc, pid), days in sorted(self.sla.items())
            if loc == location_name and pid in provider_ids
        ]
        return sorted(rows, key=lambda row: row.days)

    def find_price(self, location_name, provider_ids):
        self.calls.append("find_price")
        rows = [
            PriceRow(provider_id=pid, price_id=price_id, price=price)
            for (loc, pid), (price_id, price) in sorted(self.prices.items())
            if loc == location_name and pid in provider_ids
        ]
        return sorted(rows, key=lambda row: row.price)

    def count_active_by_provider(self, provider_id, province=None):
        self.calls.append("count_active_by_provider")
        if province is None:
            return sum(count for (pid, _), count in self.load.items() if pid == provider_id)
        return self.load.get((provider_id, province), 0)


@pytest.fixture()
def catalog():
    return FakeCatalog()


@pytest.fixture()
def engine(catalog):
    return AllocationEngine(catalog, saturation_threshold=10, m2m_provider_id=M2M, m2m_provider_name="M2M Carrier")


class TestRanking:
    def test_lowest_sla_days_wins(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=7, price=50)
        catalog.offer("Jakarta", 2, days=3, price=500)
        catalog.offer("Jakarta", 3, days=5, price=10)

        decision = engine.allocate("Jakarta")

        assert decision.provider_id == 2
        assert decision.provider_name == "Beta Link"
        assert decision.days == 3
        assert decision.price == 500
        assert decision.price_id == 1002
        assert decision.ruleset == ALLOCATION_RULESET

    def test_price_breaks_sla_tie(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=5, price=200)
        catalog.offer("Jakarta", 2, days=5, price=150)
        catalog.offer("Jakarta", 3, days=9, price=10)

        decision = engine.allocate("Jakarta")

        assert decision.provider_id == 2
        assert decision.price == 150

    def test_province_load_breaks_price_tie(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=5, price=100)
        catalog.offer("Jakarta", 2, days=5, price=100)
        catalog.load[(1, "DKI Jakarta")] = 3
        catalog.load[(2, "DKI Jakarta")] = 1

        decision = engine.allocate("Jakarta")

        assert decision.provider_id == 2

    def test_global_load_breaks_province_tie(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=5, price=100)
        catalog.offer("Jakarta", 2, days=5, price=100)
        catalog.load[(1, "DKI Jakarta")] = 2
        catalog.load[(2, "DKI Jakarta")] = 2
        catalog.load[(1, "Jawa Barat")] = 4
        catalog.load[(2, "Jawa Barat")] = 1

        decision = engine.allocate("Jakarta")

        assert decision.provider_id == 2

    def test_full_tie_takes_first_candidate(self, catalog, engine):
        catalog.offer("Jakarta", 3, days=5, price=100)
        catalog.offer("Jakarta", 1, days=5, price=100)

        decision = engine.allocate("Jakarta")

        assert decision.provider_id == 1

    def test_single_cheapest_skips_load_lookup(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=5, price=90)
        catalog.offer("Jakarta", 2, days=5, price=100)

        engine.allocate("Jakarta", exclude_saturated=False)

        assert "count_active_by_provider" not in catalog.calls

    def test_decision_is_deterministic(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=5, price=100)
        catalog.offer("Jakarta", 2, days=5, price=100)
        catalog.offer("Jakarta", 3, days=5, price=100)
        catalog.load[(3, "DKI Jakarta")] = 1

        first = engine.allocate("Jakarta")
        second = engine.allocate("Jakarta")

        assert first == second
        assert first.provider_id == 1

    def test_m2m_carrier_is_never_ranked(self, catalog, engine):
        catalog.offer("Jakarta", M2M, days=1, price=1)
        catalog.offer("Jakarta", 1, days=5, price=100)

        decision = engine.allocate("Jakarta")

        assert decision.provider_id == 1


class TestEligibility:
    def test_saturated_provider_is_excluded(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=2, price=100)
        catalog.offer("Jakarta", 2, days=6, price=100)
        catalog.load[(1, "Jawa Barat")] = 10

        decision = engine.allocate("Jakarta")

        assert decision.provider_id == 2

    def test_saturation_ignored_when_not_requested(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=2, price=100)
        catalog.offer("Jakarta", 2, days=6, price=100)
        catalog.load[(1, "Jawa Barat")] = 25

        decision = engine.allocate("Jakarta", exclude_saturated=False)

        assert decision.provider_id == 1

    def test_provider_just_below_threshold_stays_eligible(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=2, price=100)
        catalog.load[(1, "DKI Jakarta")] = 9

        assert engine.allocate("Jakarta").provider_id == 1

    def test_all_covering_providers_saturated(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=2, price=100)
        catalog.load[(1, "DKI Jakarta")] = 10

        with pytest.raises(NoCoverage) as exc_info:
            engine.allocate("Jakarta")

        assert "saturated" in exc_info.value.detail

    def test_coverage_row_existence_is_enough_by_default(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=2, price=100, avail=False)

        assert engine.allocate("Jakarta").provider_id == 1

    def test_coverage_availability_honoured_when_configured(self, catalog):
        engine = AllocationEngine(catalog, m2m_provider_id=M2M, coverage_requires_availability=True)
        catalog.offer("Jakarta", 1, days=2, price=100, avail=False)
        catalog.offer("Jakarta", 2, days=8, price=100, avail=True)

        assert engine.allocate("Jakarta").provider_id == 2

    def test_no_coverage(self, catalog, engine):
        catalog.offer("Bandung", 1, days=2, price=100)

        with pytest.raises(NoCoverage):
            engine.allocate("Jakarta")

    def test_unknown_location(self, engine):
        with pytest.raises(NoCoverage) as exc_info:
            engine.allocate("Atlantis")

        assert "Atlantis" in exc_info.value.detail

    def test_no_sla_rows(self, catalog, engine):
        catalog.offer("Jakarta", 1, price=100)

        with pytest.raises(NoServiceableProvider):
            engine.allocate("Jakarta")

    def test_no_price_rows(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=3)
        catalog.offer("Jakarta", 2, days=9, price=100)

        with pytest.raises(NoPricingAvailable):
            engine.allocate("Jakarta")


class TestPinnedProvider:
    def test_pinned_provider_bypasses_ranking(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=2, price=50)
        catalog.offer("Jakarta", 3, days=9, price=400)

        decision = engine.allocate("Jakarta", pinned_provider_id=3)

        assert decision.provider_id == 3
        assert decision.days == 9
        assert decision.price == 400

    def test_pinned_provider_still_needs_coverage(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=2, price=50)

        with pytest.raises(NoCoverage):
            engine.allocate("Jakarta", pinned_provider_id=2)

    def test_pinned_provider_needs_price(self, catalog, engine):
        catalog.offer("Jakarta", 2, days=4)

        with pytest.raises(NoPricingAvailable):
            engine.allocate("Jakarta", pinned_provider_id=2)

    def test_unknown_pinned_provider(self, catalog, engine):
        catalog.offer("Jakarta", 1, days=2, price=50)

        with pytest.raises(ProviderNotFound):
            engine.allocate("Jakarta", pinned_provider_id=42)

    def test_m2m_short_circuits_without_catalog_reads(self, catalog, engine):
        decision = engine.allocate("Nowhere", pinned_provider_id=M2M)

        assert decision.provider_id == M2M
        assert decision.provider_name == "M2M Carrier"
        assert decision.price is None
        assert decision.price_id is None
        assert decision.days is None
        assert decision.is_fixed_carrier
        assert catalog.calls == []


def test_allocation_errors_are_not_retryable():
    for error in (
        NoCoverage("x"),
        NoServiceableProvider("x"),
        NoPricingAvailable("x"),
        ProviderNotFound("x"),
    ):
        assert isinstance(error, AllocationError)
        assert error.retryable is False
        assert error.to_http_exception().status_code == error.status_code
