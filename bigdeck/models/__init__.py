from bigdeck.models.failure import SourceError, SourceErrorKind
from bigdeck.models.money import (
    UNKNOWN,
    UNKNOWN_DISPLAY,
    Money,
    Price,
    UnknownPrice,
    format_price,
    is_money,
)
from bigdeck.models.pricing import (
    WILDCARD_SET,
    CacheEntry,
    CardKey,
    LineItem,
    PricedLine,
    PriceOrigin,
    PricePair,
    PriceTotals,
    PrintRecord,
)

__all__ = [
    "CacheEntry",
    "CardKey",
    "LineItem",
    "Money",
    "Price",
    "PriceOrigin",
    "PricePair",
    "PriceTotals",
    "PricedLine",
    "PrintRecord",
    "SourceError",
    "SourceErrorKind",
    "UNKNOWN",
    "UNKNOWN_DISPLAY",
    "UnknownPrice",
    "WILDCARD_SET",
    "format_price",
    "is_money",
]
