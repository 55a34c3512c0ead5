from datetime import date
from decimal import Decimal

import pytest
from fakes import FakeCatalog, FakeClock, FakeSecondary, make_print

from bigdeck.config import PricingConfig


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> PricingConfig:
    return PricingConfig(
        positive_ttl=43_200.0,
        negative_ttl=300.0,
        fallback_multiplier=Decimal("1.15"),
        max_fallback_prints=10,
        resolver_deadline=5.0,
    )


@pytest.fixture
def counterspell_catalog() -> FakeCatalog:
    """Counterspell prints, newest first."""
    return FakeCatalog(
        [
            make_print("Counterspell", "MH3", "1.00", date(2024, 6, 14)),
            make_print("Counterspell", "CMM", "1.10", date(2023, 8, 4)),
            make_print("Counterspell", "7ED", "0.80", date(2001, 4, 11)),
        ]
    )


@pytest.fixture
def counterspell_secondary() -> FakeSecondary:
    """Card Kingdom has no MH3 price."""
    return FakeSecondary(
        {
            ("Counterspell", "CMM"): "$1.20",
            ("Counterspell", "7ED"): "$0.90",
        }
    )


@pytest.fixture
def sample_arena_export() -> str:
    """Sample Arena deck export for testing."""
    return """Deck
4 Lightning Bolt (LEB) 163
4 Monastery Swiftspear (BRO) 144
20 Mountain (NEO) 290

Sideboard
2 Abrade (VOW) 139"""
