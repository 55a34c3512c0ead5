"""Tests for the decklist pricing job."""

from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from fakes import FakeCatalog, FakeClock, FakeSecondary, build_resolver, make_print

from bigdeck.jobs.price_decklist import format_totals, main, run_price_decklist
from bigdeck.models.money import Money
from bigdeck.models.pricing import PriceTotals
from bigdeck.services.pricing_service import PricingService


@pytest.fixture
def service(clock: FakeClock) -> PricingService:
    catalog = FakeCatalog([make_print("Sol Ring", "C21", "2.00")])
    secondary = FakeSecondary({("Sol Ring", "C21"): "$2.30"})
    return PricingService(build_resolver(catalog, secondary, clock))


class TestRunPriceDecklist:
    async def test_prices_text(self, service: PricingService) -> None:
        totals = await run_price_decklist("3 Sol Ring (C21)\n1 Made-Up Card", service=service)

        assert totals.tcg_total == Money(Decimal("6.00"))
        assert totals.ck_total == Money(Decimal("6.90"))
        assert totals.unpriced == 1

    async def test_owned_service_is_closed(self) -> None:
        owned = AsyncMock(spec=PricingService)
        owned.price_decklist.return_value = PriceTotals()

        with patch(
            "bigdeck.jobs.price_decklist.PricingService.from_settings",
            return_value=owned,
        ):
            await run_price_decklist("1 Sol Ring")

        owned.aclose.assert_awaited_once()

    async def test_passed_service_is_left_open(self, service: PricingService) -> None:
        with patch.object(service, "aclose", new_callable=AsyncMock) as aclose:
            await run_price_decklist("1 Sol Ring (C21)", service=service)

        aclose.assert_not_awaited()


class TestFormatTotals:
    async def test_report(self, service: PricingService) -> None:
        totals = await service.price_decklist("3 Sol Ring (C21)\n1 Made-Up Card")

        report = format_totals(totals)

        assert "3 Sol Ring [C21]  TCG $2.00  CK $2.30" in report
        assert "1 Made-Up Card [*]  TCG N/A  CK N/A" in report
        assert "Total TCG: $6.00" in report
        assert "Total CK:  $6.90" in report
        assert "Unpriced lines: 1" in report

    def test_fully_priced_has_no_unpriced_line(self) -> None:
        assert "Unpriced" not in format_totals(PriceTotals())


class TestMain:
    def test_prints_report(
        self, tmp_path: Path, service: PricingService, capsys: pytest.CaptureFixture[str]
    ) -> None:
        deck = tmp_path / "deck.txt"
        deck.write_text("3 Sol Ring (C21)\n", encoding="utf-8")

        with patch(
            "bigdeck.jobs.price_decklist.PricingService.from_settings",
            return_value=service,
        ):
            exit_code = main([str(deck)])

        assert exit_code == 0
        assert "Total TCG: $6.00" in capsys.readouterr().out

    def test_missing_file(self, tmp_path: Path) -> None:
        assert main([str(tmp_path / "missing.txt")]) == 1
