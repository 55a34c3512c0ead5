"""
Pricing pipeline models.

INVARIANTS:
- CardKey is value-hashable; set_code == "" is the wildcard set
- Resolved PricePair: if tcg is Unknown then ck is Unknown (a single-print
  fetch may still carry a secondary ck without a tcg)
- PricePair: ck_source == DERIVED implies tcg and ck are Money
- CacheEntry: expires_at > pair.fetched_at
- LineItem: non-empty name, quantity >= 1
- All models are frozen (immutable after construction)
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from bigdeck.models.money import UNKNOWN, Money, Price, is_money

WILDCARD_SET = ""


class PriceOrigin(str, Enum):
    """Where a price component came from."""

    CATALOG = "catalog"
    SECONDARY = "secondary"
    DERIVED = "derived"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class CardKey:
    """
    Cache-stable identity of one printing (or any printing, for the wildcard).

    Build with bigdeck.services.normalizer.normalize_key, not directly.

    Attributes:
        name: Normalized card name
        set_code: Normalized upper-case set code, "" for any print
    """

    name: str
    set_code: str = WILDCARD_SET

    @property
    def is_wildcard(self) -> bool:
        return self.set_code == WILDCARD_SET

    def __str__(self) -> str:
        return f"{self.name}|{self.set_code or '*'}"


@dataclass(frozen=True, slots=True)
class PricePair:
    """
    One resolved pricing result.

    Attributes:
        tcg: Primary (catalog) price
        ck: Secondary vendor price
        tcg_source: Provenance of tcg
        ck_source: Provenance of ck
        fetched_at: Epoch seconds when the pair was produced
        resolved_set: Set code of the print that supplied the price, "" if none
    """

    tcg: Price
    ck: Price
    tcg_source: PriceOrigin
    ck_source: PriceOrigin
    fetched_at: float
    resolved_set: str = ""

    def __post_init__(self) -> None:
        if self.ck_source is PriceOrigin.DERIVED and not (is_money(self.tcg) and is_money(self.ck)):
            raise ValueError("A derived ck needs a priced tcg")

    @classmethod
    def unknown(cls, fetched_at: float) -> "PricePair":
        return cls(
            tcg=UNKNOWN,
            ck=UNKNOWN,
            tcg_source=PriceOrigin.UNKNOWN,
            ck_source=PriceOrigin.UNKNOWN,
            fetched_at=fetched_at,
        )

    @property
    def is_unknown(self) -> bool:
        """True if neither component is priced."""
        return not is_money(self.tcg) and not is_money(self.ck)

    @property
    def is_complete(self) -> bool:
        """True if both components are Money (direct or derived)."""
        return is_money(self.tcg) and is_money(self.ck)

    @property
    def has_direct_secondary(self) -> bool:
        return self.ck_source is PriceOrigin.SECONDARY and is_money(self.ck)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A stored PricePair with its expiry (epoch seconds)."""

    key: CardKey
    pair: PricePair
    expires_at: float

    def __post_init__(self) -> None:
        if self.expires_at <= self.pair.fetched_at:
            raise ValueError("CacheEntry must expire after it was fetched")

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


@dataclass(frozen=True, slots=True)
class PrintRecord:
    """
    One print of a card from the catalog.

    Attributes:
        name: Card name as the catalog spells it
        set_code: Upper-case set code
        set_name: Human readable set name
        released_at: Release date, None if the catalog omits it
        primary_price: Catalog headline price for this print
    """

    name: str
    set_code: str
    set_name: str = ""
    released_at: date | None = None
    primary_price: Price = UNKNOWN


@dataclass(frozen=True, slots=True)
class LineItem:
    """
    One decklist or container line to be priced.

    Attributes:
        name: Card name (non-empty)
        quantity: Copies (>= 1)
        set_code: Requested set, "" when the line names no set
    """

    name: str
    quantity: int = 1
    set_code: str = ""

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("LineItem name must be non-empty")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError(f"LineItem quantity must be an integer, got {self.quantity!r}")
        if self.quantity < 1:
            raise ValueError(f"LineItem quantity must be >= 1, got {self.quantity}")


@dataclass(frozen=True, slots=True)
class PricedLine:
    """A line item with the pair it resolved to."""

    item: LineItem
    pair: PricePair

    @property
    def tcg_subtotal(self) -> Price:
        return self.pair.tcg * self.item.quantity if is_money(self.pair.tcg) else UNKNOWN

    @property
    def ck_subtotal(self) -> Price:
        return self.pair.ck * self.item.quantity if is_money(self.pair.ck) else UNKNOWN


@dataclass(frozen=True, slots=True)
class PriceTotals:
    """
    Aggregate price of a decklist or container.

    Attributes:
        tcg_total: Sum of tcg x quantity over priced lines
        ck_total: Sum of ck x quantity over priced lines
        unpriced: Number of lines with at least one Unknown component
        lines: Per-line breakdown in input order
    """

    tcg_total: Money = field(default_factory=Money.zero)
    ck_total: Money = field(default_factory=Money.zero)
    unpriced: int = 0
    lines: tuple[PricedLine, ...] = ()
