"""
BigDeck services.

The card-pricing pipeline: normalization, fetching, caching, resolution
and aggregation.
"""

from bigdeck.services.fetcher import FetchResult, PriceFetcher, derive_secondary
from bigdeck.services.normalizer import normalize_key, normalize_name, normalize_set
from bigdeck.services.price_aggregator import InventorySetLookup, PriceAggregator
from bigdeck.services.price_cache import PriceCache
from bigdeck.services.price_resolver import PendingLookup, PriceResolver
from bigdeck.services.pricing_service import PricingService, container_item_to_line

__all__ = [
    # Normalizer
    "normalize_key",
    "normalize_name",
    "normalize_set",
    # Fetcher
    "FetchResult",
    "PriceFetcher",
    "derive_secondary",
    # Cache
    "PriceCache",
    # Resolver + coalescer
    "PendingLookup",
    "PriceResolver",
    # Aggregator
    "InventorySetLookup",
    "PriceAggregator",
    # Facade
    "PricingService",
    "container_item_to_line",
]
