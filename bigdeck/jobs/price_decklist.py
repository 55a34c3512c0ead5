"""
Price a decklist file from the command line.

Reads a decklist ("3 Sol Ring (C21)" per line), resolves every card and
prints per-line and total prices. Can be run as a standalone script:

    python -m bigdeck.jobs.price_decklist deck.txt
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from bigdeck.models.money import format_price
from bigdeck.models.pricing import PriceTotals
from bigdeck.services.pricing_service import PricingService

logger = logging.getLogger(__name__)


def format_totals(totals: PriceTotals) -> str:
    """Render priced lines and totals as a plain-text report."""
    rows = []
    for line in totals.lines:
        set_label = line.pair.resolved_set or line.item.set_code or "*"
        rows.append(
            f"{line.item.quantity:>3} {line.item.name} [{set_label}]  "
            f"TCG {format_price(line.pair.tcg)}  CK {format_price(line.pair.ck)}"
        )
    rows.append("")
    rows.append(f"Total TCG: {format_price(totals.tcg_total)}")
    rows.append(f"Total CK:  {format_price(totals.ck_total)}")
    if totals.unpriced:
        rows.append(f"Unpriced lines: {totals.unpriced}")
    return "\n".join(rows)


async def run_price_decklist(text: str, service: PricingService | None = None) -> PriceTotals:
    """
    Price decklist text.

    Args:
        text: Raw decklist
        service: Pricing service to use. A new one is built from settings
            (and closed afterwards) if None.

    Returns:
        Totals for the decklist
    """
    owned = service is None
    if service is None:
        service = PricingService.from_settings()

    try:
        totals = await service.price_decklist(text)
    finally:
        if owned:
            await service.aclose()

    logger.info(
        "Priced %d lines (%d unpriced)",
        len(totals.lines),
        totals.unpriced,
    )
    return totals


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for pricing a decklist file."""
    parser = argparse.ArgumentParser(description="Price a decklist file")
    parser.add_argument("file", type=Path, help="Decklist text file")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        text = args.file.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("Cannot read %s: %s", args.file, e)
        return 1

    totals = asyncio.run(run_price_decklist(text))
    print(format_totals(totals))
    return 0


if __name__ == "__main__":
    sys.exit(main())
