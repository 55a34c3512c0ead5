"""Tests for the single-print price fetcher."""

from decimal import Decimal

from fakes import T0, FakeCatalog, FakeClock, FakeSecondary, make_print

from bigdeck.models.failure import SourceError, SourceErrorKind
from bigdeck.models.money import UNKNOWN, Money
from bigdeck.models.pricing import PriceOrigin
from bigdeck.services.fetcher import PriceFetcher, derive_secondary


def _catalog() -> FakeCatalog:
    return FakeCatalog([make_print("Sol Ring", "C21", "2.00")])


class TestDeriveSecondary:
    def test_multiplies_and_rounds_to_cents(self) -> None:
        assert derive_secondary(Money(Decimal("1.99")), Decimal("1.15")) == Money(Decimal("2.29"))

    def test_unknown_stays_unknown(self) -> None:
        assert derive_secondary(UNKNOWN, Decimal("1.15")) is UNKNOWN

    def test_disabled(self) -> None:
        assert derive_secondary(Money(Decimal("4.00")), None) is UNKNOWN


class TestPriceFetcher:
    async def test_both_sources_priced(self, clock: FakeClock) -> None:
        """tcg comes from the catalog, ck from the secondary source."""
        secondary = FakeSecondary({("Sol Ring", "C21"): "$2.30"})
        fetcher = PriceFetcher(_catalog(), secondary, clock=clock)

        result = await fetcher.fetch("Sol Ring", "C21")

        pair = result.pair
        assert pair.tcg == Money(Decimal("2.00"))
        assert pair.ck == Money(Decimal("2.30"))
        assert pair.tcg_source is PriceOrigin.CATALOG
        assert pair.ck_source is PriceOrigin.SECONDARY
        assert pair.fetched_at == T0
        assert pair.resolved_set == "C21"
        assert result.catalog_error is None
        assert result.secondary_error is None

    async def test_secondary_unknown_is_derived(self, clock: FakeClock) -> None:
        fetcher = PriceFetcher(_catalog(), FakeSecondary(), clock=clock)

        pair = (await fetcher.fetch("Sol Ring", "C21")).pair

        assert pair.ck == Money(Decimal("2.30"))
        assert pair.ck_source is PriceOrigin.DERIVED

    async def test_derivation_disabled(self, clock: FakeClock) -> None:
        fetcher = PriceFetcher(_catalog(), FakeSecondary(), fallback_multiplier=None, clock=clock)

        pair = (await fetcher.fetch("Sol Ring", "C21")).pair

        assert pair.tcg == Money(Decimal("2.00"))
        assert pair.ck is UNKNOWN
        assert pair.ck_source is PriceOrigin.UNKNOWN

    async def test_source_failures_become_unknown(self, clock: FakeClock) -> None:
        """Fetcher never raises; failures are reported per source."""
        catalog = FakeCatalog(error=SourceError(SourceErrorKind.UNAVAILABLE, "catalog"))
        secondary = FakeSecondary(error=SourceError(SourceErrorKind.TIMEOUT, "secondary"))
        fetcher = PriceFetcher(catalog, secondary, clock=clock)

        result = await fetcher.fetch("Sol Ring", "C21")

        assert result.pair.is_unknown
        assert result.pair.resolved_set == ""
        assert result.catalog_error is SourceErrorKind.UNAVAILABLE
        assert result.secondary_error is SourceErrorKind.TIMEOUT
        assert result.all_sources_unavailable

    async def test_rate_limited_secondary_derives(self, clock: FakeClock) -> None:
        secondary = FakeSecondary(error=SourceError(SourceErrorKind.RATE_LIMITED, "secondary"))
        fetcher = PriceFetcher(_catalog(), secondary, clock=clock)

        result = await fetcher.fetch("Sol Ring", "C21")

        assert result.pair.ck_source is PriceOrigin.DERIVED
        assert result.secondary_error is SourceErrorKind.RATE_LIMITED
        assert not result.all_sources_unavailable

    async def test_missing_print(self, clock: FakeClock) -> None:
        secondary = FakeSecondary({("Sol Ring", "LEA"): "$900.00"})
        fetcher = PriceFetcher(_catalog(), secondary, clock=clock)

        result = await fetcher.fetch("Sol Ring", "LEA")

        assert result.pair.tcg is UNKNOWN
        assert result.pair.ck == Money(Decimal("900.00"))
        assert result.catalog_error is SourceErrorKind.NOT_FOUND

    async def test_print_record_skips_catalog(self, clock: FakeClock) -> None:
        catalog = _catalog()
        secondary = FakeSecondary({("Sol Ring", "CMM"): "$1.50"})
        fetcher = PriceFetcher(catalog, secondary, clock=clock)
        record = make_print("Sol Ring", "CMM", "1.25")

        pair = (await fetcher.fetch("Sol Ring", "CMM", print_record=record)).pair

        assert pair.tcg == Money(Decimal("1.25"))
        assert pair.ck == Money(Decimal("1.50"))
        assert catalog.call_count == 0
        assert secondary.calls == [("Sol Ring", "CMM")]

    async def test_sources_called_once_each(self, clock: FakeClock) -> None:
        catalog = _catalog()
        secondary = FakeSecondary()
        fetcher = PriceFetcher(catalog, secondary, clock=clock)

        await fetcher.fetch("Sol Ring", "C21")

        assert catalog.get_print_calls == [("Sol Ring", "C21")]
        assert catalog.iter_calls == []
        assert secondary.calls == [("Sol Ring", "C21")]
