"""
Parser for pasted decklist text.

Supports:
- "4 Lightning Bolt" / "4x Lightning Bolt" / "4X Lightning Bolt"
- "3 Sol Ring (C21)"
- "1 Fire // Ice (MH2) 290"  (collector number ignored)

Skips blank lines, "//" comments and section headers
(Deck, Sideboard, Commander, Companion, Maybeboard). Lines that match none of
the patterns are ignored.
"""

import re

from bigdeck.models.pricing import LineItem

# Pattern: "4 Card Name" or "4x Card Name"
# Groups: (quantity, rest)
QUANTITY_PATTERN = re.compile(r"^(\d+)\s*[xX]?\s+(.+)$")

# Pattern: "Card Name (SET)" or "Card Name (SET) 123a"
# Groups: (card_name, set_code)
SET_SUFFIX_PATTERN = re.compile(r"^(.+?)\s*\(\s*([A-Za-z0-9]{2,6})\s*\)(?:\s+\S+)?$")

SECTION_HEADERS = frozenset({"deck", "sideboard", "commander", "companion", "maybeboard"})


def parse_decklist_line(line: str) -> LineItem | None:
    """
    Parse one decklist line.

    Returns:
        LineItem, or None for blank, comment, header and malformed lines
    """
    line = line.strip()
    if not line or line.startswith("//"):
        return None
    if line.rstrip(":").lower() in SECTION_HEADERS:
        return None

    match = QUANTITY_PATTERN.match(line)
    if not match:
        return None

    quantity = int(match.group(1))
    rest = match.group(2).strip()
    if quantity < 1 or not rest:
        return None

    set_match = SET_SUFFIX_PATTERN.match(rest)
    if set_match:
        name = set_match.group(1).strip()
        set_code = set_match.group(2).upper()
    else:
        name, set_code = rest, ""

    if not name:
        return None
    return LineItem(name=name, quantity=quantity, set_code=set_code)


def parse_decklist(text: str) -> list[LineItem]:
    """
    Parse decklist text into line items, in input order.

    Duplicate lines are kept as separate items; the aggregator sums them.

    Examples:
        "3 Sol Ring (C21)\\n1 Made-Up Card" ->
            [LineItem("Sol Ring", 3, "C21"), LineItem("Made-Up Card", 1, "")]
    """
    if not text or not text.strip():
        return []

    items: list[LineItem] = []
    for line in text.splitlines():
        item = parse_decklist_line(line)
        if item is not None:
            items.append(item)
    return items
