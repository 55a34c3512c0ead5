"""
Pricing service.

The inbound surface of the pricing pipeline used by the API and jobs:

- resolve(name, set) -> PricePair
- price_decklist(text | lines) -> PriceTotals
- price_container(items) -> PriceTotals
- invalidate_all() ("Refresh Price Cache")

One instance per process owns the cache, the pending table and the shared
HTTP client.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import httpx

from bigdeck.config import PricingConfig, Settings, settings
from bigdeck.models.pricing import LineItem, PricePair, PriceTotals
from bigdeck.parsers.decklist import parse_decklist
from bigdeck.services.price_aggregator import InventorySetLookup, PriceAggregator
from bigdeck.services.price_resolver import PriceResolver
from bigdeck.sources.catalog import ScryfallCatalog
from bigdeck.sources.secondary import ProxySecondary

logger = logging.getLogger(__name__)

ContainerItem = LineItem | Mapping[str, Any]


def container_item_to_line(item: ContainerItem) -> LineItem:
    """
    Convert a container row ({name, set, quantity}) to a LineItem.

    Raises:
        ValueError: If the row has no name or a non-positive quantity
    """
    if isinstance(item, LineItem):
        return item
    set_code = item.get("set") or item.get("set_code") or ""
    return LineItem(
        name=str(item.get("name") or ""),
        quantity=int(item.get("quantity", 1)),
        set_code=str(set_code),
    )


class PricingService:
    """Facade over the resolver and aggregator."""

    def __init__(
        self,
        resolver: PriceResolver,
        aggregator: PriceAggregator | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            resolver: Resolver owning cache and pending state
            aggregator: Aggregator; defaults to one over resolver
            client: HTTP client owned by this service, closed by aclose()
        """
        self.resolver = resolver
        self.aggregator = aggregator or PriceAggregator(resolver)
        self._client = client

    @classmethod
    def from_settings(
        cls,
        source_settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> "PricingService":
        """
        Build the full pipeline from settings.

        Args:
            source_settings: Settings to use. Defaults to the module settings.
            client: Shared HTTP client. A new one is created (and owned) if None.
        """
        s = source_settings or settings
        config = PricingConfig.from_settings(s)

        owned_client = None
        if client is None:
            client = owned_client = httpx.AsyncClient(
                headers={"User-Agent": s.user_agent},
                follow_redirects=True,
            )

        catalog = ScryfallCatalog(
            base_url=s.catalog_base_url,
            timeout=config.catalog_timeout,
            client=client,
            min_interval=s.catalog_min_interval_ms / 1000,
            user_agent=s.user_agent,
        )
        secondary = ProxySecondary(
            base_url=s.secondary_base_url,
            timeout=config.secondary_timeout,
            client=client,
        )
        resolver = PriceResolver(catalog, secondary, config=config)
        return cls(resolver, client=owned_client)

    async def resolve(self, card_name: str | None, set_code: str | None = None) -> PricePair:
        return await self.resolver.resolve(card_name, set_code)

    async def price_decklist(
        self,
        lines: str | Iterable[LineItem],
        inventory_sets: InventorySetLookup | None = None,
    ) -> PriceTotals:
        """Price a decklist given as raw text or parsed lines."""
        items = parse_decklist(lines) if isinstance(lines, str) else list(lines)
        return await self.aggregator.price_lines(items, inventory_sets)

    async def price_container(
        self,
        items: Iterable[ContainerItem],
        inventory_sets: InventorySetLookup | None = None,
    ) -> PriceTotals:
        """Price container contents. Rows that are not valid line items are skipped."""
        lines: list[LineItem] = []
        for item in items:
            try:
                lines.append(container_item_to_line(item))
            except (TypeError, ValueError) as e:
                logger.warning(
                    "CONTAINER_ITEM_SKIPPED", extra={"item": repr(item), "error": str(e)}
                )
        return await self.aggregator.price_lines(lines, inventory_sets)

    def invalidate_all(self) -> int:
        return self.resolver.invalidate_all()

    def cache_stats(self) -> dict[str, int | None]:
        stats = self.resolver.cache.stats()
        stats["pending"] = self.resolver.pending_count
        return stats

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
