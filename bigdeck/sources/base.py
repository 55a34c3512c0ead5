"""
Price source interfaces.

Two logical sources feed the pricing pipeline:
- Catalog: print metadata plus a primary (tcg) price per print
- Secondary: a vendor (ck) price per print, served by the backend proxy

Both are opaque and rate-limited, and sometimes fail. Implementations raise
SourceError for every failure except cancellation.
"""

from collections.abc import AsyncGenerator
from typing import Protocol

from bigdeck.models.money import Price
from bigdeck.models.pricing import PrintRecord


class CatalogSource(Protocol):
    name: str

    def iter_prints(self, card_name: str) -> AsyncGenerator[PrintRecord, None]:
        """Yield prints newest first. Yields nothing if the card is unknown."""
        ...

    async def get_prints(self, card_name: str) -> list[PrintRecord]: ...

    async def get_print(self, card_name: str, set_code: str) -> PrintRecord:
        """Raises SourceError(NOT_FOUND) if the print does not exist."""
        ...


class SecondarySource(Protocol):
    name: str

    async def get_secondary(self, card_name: str, set_code: str) -> Price: ...
