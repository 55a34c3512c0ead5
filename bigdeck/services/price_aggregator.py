"""
Decklist / container price aggregation.

Prices every line through the resolver concurrently and sums
price x quantity. Duplicate keys coalesce inside the resolver, so a deck
listing the same card twice costs one lookup.

INVARIANTS:
1. Never raises (except cancellation); unresolved lines count as unpriced
2. Totals depend only on the resolved pairs, not on completion order
3. A line with any Unknown component counts once toward unpriced
"""

import asyncio
import logging
import time
from collections.abc import Callable, Iterable

from bigdeck.models.money import Money
from bigdeck.models.pricing import CardKey, LineItem, PricedLine, PricePair, PriceTotals
from bigdeck.services.normalizer import normalize_key, normalize_set
from bigdeck.services.price_resolver import PriceResolver

logger = logging.getLogger(__name__)

# Inventory collaborator: card name -> set code the user owns, or None
InventorySetLookup = Callable[[str], str | None]


class PriceAggregator:
    """Sums resolved prices over line items."""

    def __init__(
        self,
        resolver: PriceResolver,
        inventory_sets: InventorySetLookup | None = None,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            resolver: Resolver used for every line
            inventory_sets: Default inventory lookup for lines without a set
        """
        self._resolver = resolver
        self._inventory_sets = inventory_sets

    def key_for(self, item: LineItem, inventory_sets: InventorySetLookup | None = None) -> CardKey:
        """
        Choose the key for a line.

        Order: the line's own set, then the inventory's known set for the
        name, then any print (wildcard).
        """
        if normalize_set(item.set_code):
            return normalize_key(item.name, item.set_code)

        lookup = inventory_sets or self._inventory_sets
        if lookup is not None:
            try:
                known_set = lookup(item.name)
            except Exception:
                logger.exception("INVENTORY_SET_LOOKUP_FAILED", extra={"card_name": item.name})
                known_set = None
            if known_set:
                return normalize_key(item.name, known_set)

        return normalize_key(item.name)

    async def _resolve_line(self, key: CardKey) -> PricePair:
        try:
            return await self._resolver.resolve_key(key)
        except Exception:
            logger.exception("LINE_RESOLVE_FAILED", extra={"key": str(key)})
            return PricePair.unknown(time.time())

    async def price_lines(
        self,
        items: Iterable[LineItem],
        inventory_sets: InventorySetLookup | None = None,
    ) -> PriceTotals:
        """
        Price a sequence of line items.

        Args:
            items: Lines to price
            inventory_sets: Inventory lookup for this call, overriding the default

        Returns:
            PriceTotals with per-line breakdown in input order
        """
        lines = list(items)
        if not lines:
            return PriceTotals()

        keys = [self.key_for(item, inventory_sets) for item in lines]
        pairs = await asyncio.gather(*(self._resolve_line(key) for key in keys))

        tcg_total = Money.zero()
        ck_total = Money.zero()
        unpriced = 0
        priced_lines: list[PricedLine] = []

        for item, pair in zip(lines, pairs, strict=True):
            priced = PricedLine(item=item, pair=pair)
            priced_lines.append(priced)

            if isinstance(priced.tcg_subtotal, Money):
                tcg_total = tcg_total + priced.tcg_subtotal
            if isinstance(priced.ck_subtotal, Money):
                ck_total = ck_total + priced.ck_subtotal
            if not pair.is_complete:
                unpriced += 1

        logger.debug(
            "LINES_PRICED",
            extra={"lines": len(lines), "unique_keys": len(set(keys)), "unpriced": unpriced},
        )
        return PriceTotals(
            tcg_total=tcg_total,
            ck_total=ck_total,
            unpriced=unpriced,
            lines=tuple(priced_lines),
        )
