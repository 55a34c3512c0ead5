"""
Single-print price fetcher.

One shot for one (name, set): asks the catalog and the secondary source
concurrently and folds the answers into a PricePair. No fallback across
prints and no caching; the resolver owns both.

INVARIANTS:
1. Never raises SourceError; failures become Unknown fields
2. A derived ck is always tcg x multiplier, never derived from a derived value
3. With multiplier None nothing is derived
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from bigdeck.models.failure import SourceError, SourceErrorKind
from bigdeck.models.money import UNKNOWN, Price, is_money
from bigdeck.models.pricing import PriceOrigin, PricePair, PrintRecord
from bigdeck.sources.base import CatalogSource, SecondarySource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FetchResult:
    """
    Outcome of one fetch.

    Attributes:
        pair: The folded price pair
        catalog_error: Failure kind from the catalog, None on success
        secondary_error: Failure kind from the secondary source, None on success
    """

    pair: PricePair
    catalog_error: SourceErrorKind | None = None
    secondary_error: SourceErrorKind | None = None

    @property
    def all_sources_unavailable(self) -> bool:
        unavailable = {SourceErrorKind.UNAVAILABLE, SourceErrorKind.TIMEOUT}
        return self.catalog_error in unavailable and self.secondary_error in unavailable


def derive_secondary(tcg: Price, multiplier: Decimal | None) -> Price:
    """ck estimate from tcg, rounded to cents. UNKNOWN if tcg is unpriced or derivation is off."""
    if multiplier is None or not is_money(tcg):
        return UNKNOWN
    return (tcg * multiplier).rounded()


class PriceFetcher:
    """Fetches one print's price pair from both sources."""

    def __init__(
        self,
        catalog: CatalogSource,
        secondary: SecondarySource,
        fallback_multiplier: Decimal | None = Decimal("1.15"),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._catalog = catalog
        self._secondary = secondary
        self._multiplier = fallback_multiplier
        self._clock = clock

    async def _primary(
        self, card_name: str, set_code: str, print_record: PrintRecord | None
    ) -> tuple[Price, SourceErrorKind | None]:
        if print_record is not None:
            return print_record.primary_price, None
        try:
            record = await self._catalog.get_print(card_name, set_code)
        except SourceError as e:
            logger.warning(
                "CATALOG_LOOKUP_FAILED",
                extra={"card_name": card_name, "set_code": set_code, "kind": e.kind.value},
            )
            return UNKNOWN, e.kind
        return record.primary_price, None

    async def _secondary_price(
        self, card_name: str, set_code: str
    ) -> tuple[Price, SourceErrorKind | None]:
        try:
            return await self._secondary.get_secondary(card_name, set_code), None
        except SourceError as e:
            logger.warning(
                "SECONDARY_LOOKUP_FAILED",
                extra={"card_name": card_name, "set_code": set_code, "kind": e.kind.value},
            )
            return UNKNOWN, e.kind

    async def fetch(
        self,
        card_name: str,
        set_code: str,
        print_record: PrintRecord | None = None,
    ) -> FetchResult:
        """
        Price one specific print.

        Args:
            card_name: Card name
            set_code: Specific (non-wildcard) set code
            print_record: Catalog record already in hand; when given, its
                primary price is used and the catalog is not called

        Returns:
            FetchResult with the pair and per-source failure kinds
        """
        (tcg, catalog_error), (ck, secondary_error) = await asyncio.gather(
            self._primary(card_name, set_code, print_record),
            self._secondary_price(card_name, set_code),
        )

        tcg_source = PriceOrigin.CATALOG if is_money(tcg) else PriceOrigin.UNKNOWN
        ck_source = PriceOrigin.SECONDARY if is_money(ck) else PriceOrigin.UNKNOWN

        if not is_money(ck):
            ck = derive_secondary(tcg, self._multiplier)
            if is_money(ck):
                ck_source = PriceOrigin.DERIVED

        pair = PricePair(
            tcg=tcg,
            ck=ck,
            tcg_source=tcg_source,
            ck_source=ck_source,
            fetched_at=self._clock(),
            resolved_set=set_code if is_money(tcg) or is_money(ck) else "",
        )
        return FetchResult(
            pair=pair,
            catalog_error=catalog_error,
            secondary_error=secondary_error,
        )
