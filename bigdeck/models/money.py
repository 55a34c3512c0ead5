"""
Money and Unknown price values.

Source responses carry prices as loose strings ("$2.00", "N/A"). They are
parsed into these types at the source boundary; nothing past that boundary
works with string prices.

INVARIANTS:
- Money is never negative
- Unknown is a distinct value, never 0
- Arithmetic keeps full Decimal precision; rounding happens only in display() and rounded()
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

UNKNOWN_DISPLAY = "N/A"

_CENT = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class Money:
    """
    A non-negative monetary amount in USD.

    Attributes:
        amount: Exact amount. Not rounded until display.
    """

    amount: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            # Accept ints and numeric strings; floats go through str() to avoid
            # binary artifacts like 1.149999...
            object.__setattr__(self, "amount", Decimal(str(self.amount)))
        if not self.amount.is_finite() or self.amount < 0:
            raise ValueError(f"Money must be a finite non-negative amount, got {self.amount}")

    @classmethod
    def zero(cls) -> "Money":
        return cls(Decimal(0))

    @classmethod
    def parse(cls, raw: object) -> "Price":
        """
        Parse a loosely typed source price.

        Accepts "$2.00", "2.00", "1,234.50", numbers. Returns UNKNOWN for
        None, "", "N/A", unparseable text, and negative values.

        Examples:
            Money.parse("$2.30") -> Money(Decimal("2.30"))
            Money.parse("N/A")   -> UNKNOWN
        """
        if raw is None or isinstance(raw, bool):
            return UNKNOWN
        if isinstance(raw, int | float | Decimal):
            text = str(raw)
        elif isinstance(raw, str):
            text = raw.strip().replace("$", "").replace(",", "").strip()
        else:
            return UNKNOWN

        if not text or text.upper() == UNKNOWN_DISPLAY:
            return UNKNOWN

        try:
            amount = Decimal(text)
        except InvalidOperation:
            return UNKNOWN

        if not amount.is_finite() or amount < 0:
            return UNKNOWN
        return cls(amount)

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount + other.amount)

    def __mul__(self, factor: int | Decimal) -> "Money":
        if isinstance(factor, bool) or not isinstance(factor, int | Decimal):
            return NotImplemented
        return Money(self.amount * factor)

    __rmul__ = __mul__

    def rounded(self) -> "Money":
        """Round half-up to cents."""
        return Money(self.amount.quantize(_CENT, rounding=ROUND_HALF_UP))

    def display(self) -> str:
        return f"${self.rounded().amount:.2f}"

    def __str__(self) -> str:
        return self.display()


class UnknownPrice:
    """Sentinel for a price no source could supply. Use the UNKNOWN instance."""

    __slots__ = ()
    _instance: "UnknownPrice | None" = None

    def __new__(cls) -> "UnknownPrice":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __bool__(self) -> bool:
        return False

    def display(self) -> str:
        return UNKNOWN_DISPLAY

    def __str__(self) -> str:
        return UNKNOWN_DISPLAY

    def __reduce__(self) -> str:
        return "UNKNOWN"


UNKNOWN = UnknownPrice()

Price = Money | UnknownPrice


def is_money(price: Price) -> bool:
    return isinstance(price, Money)


def format_price(price: Price) -> str:
    """Render a price for display: "$X.YZ" or "N/A"."""
    return price.display()
