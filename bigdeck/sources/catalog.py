"""
Scryfall catalog source.

Print enumeration and set-specific lookups against the Scryfall API.
The primary (tcg) price is the print's "usd" price, read straight from the
card object.

API docs: https://scryfall.com/docs/api/cards
"""

import logging
from collections.abc import AsyncGenerator
from datetime import date
from typing import Any

import httpx

from bigdeck.config import settings
from bigdeck.models.failure import SourceError, SourceErrorKind
from bigdeck.models.money import Money
from bigdeck.models.pricing import PrintRecord
from bigdeck.sources.http import RequestThrottle, get_json

logger = logging.getLogger(__name__)

SOURCE_NAME = "catalog"

# Scryfall returns at most 175 cards per search page; stop following
# next_page links after this many pages.
MAX_SEARCH_PAGES = 5


def _parse_date(raw: Any) -> date | None:
    if not isinstance(raw, str):
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def parse_print(card: Any) -> PrintRecord:
    """
    Build a PrintRecord from a Scryfall card object.

    Raises:
        SourceError: MALFORMED_RESPONSE if name or set is missing
    """
    if not isinstance(card, dict) or not card.get("name") or not card.get("set"):
        raise SourceError(SourceErrorKind.MALFORMED_RESPONSE, SOURCE_NAME, "card without name/set")

    prices = card.get("prices") or {}
    return PrintRecord(
        name=str(card["name"]),
        set_code=str(card["set"]).upper(),
        set_name=str(card.get("set_name") or ""),
        released_at=_parse_date(card.get("released_at")),
        primary_price=Money.parse(prices.get("usd") if isinstance(prices, dict) else None),
    )


def _newest_first(prints: list[PrintRecord]) -> list[PrintRecord]:
    # Stable: prints without a date keep their API position at the end
    return sorted(prints, key=lambda p: p.released_at or date.min, reverse=True)


class ScryfallCatalog:
    """
    Catalog source backed by the Scryfall REST API.

    Every request is spaced by a shared RequestThrottle and bounded by
    the per-attempt timeout.
    """

    name = SOURCE_NAME

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
        min_interval: float = 0.1,
        user_agent: str | None = None,
    ) -> None:
        """
        Initialize the catalog client.

        Args:
            base_url: Scryfall API base URL. Defaults to settings.catalog_base_url.
            timeout: Per-attempt timeout in seconds.
            client: Optional shared httpx client for connection reuse.
            min_interval: Minimum seconds between requests.
            user_agent: User-Agent header. Defaults to settings.user_agent.
        """
        self.base_url = (base_url or settings.catalog_base_url).rstrip("/")
        self.timeout = timeout
        self._client = client
        self._throttle = RequestThrottle(min_interval)
        self._headers = {
            "User-Agent": user_agent or settings.user_agent,
            "Accept": "application/json",
        }

    async def _get(self, url: str, params: dict[str, str] | None = None) -> Any:
        await self._throttle.wait()
        return await get_json(
            url,
            source=SOURCE_NAME,
            timeout=self.timeout,
            client=self._client,
            params=params,
            headers=self._headers,
        )

    async def get_print(self, card_name: str, set_code: str) -> PrintRecord:
        """
        Fetch one specific print.

        An exact-name miss is retried once as a fuzzy match within the set.

        Raises:
            SourceError: NOT_FOUND if Scryfall has no such print, or any
                transport failure kind
        """
        url = f"{self.base_url}/cards/named"
        try:
            data = await self._get(url, params={"exact": card_name, "set": set_code.lower()})
        except SourceError as e:
            if e.kind is not SourceErrorKind.NOT_FOUND:
                raise
            data = await self._get(url, params={"fuzzy": card_name, "set": set_code.lower()})
        return parse_print(data)

    async def match_name(self, card_name: str) -> str | None:
        """
        Scryfall's fuzzy match for a card name.

        Returns:
            The card's canonical name, or None if nothing matches
        """
        try:
            data = await self._get(f"{self.base_url}/cards/named", params={"fuzzy": card_name})
        except SourceError as e:
            if e.kind is SourceErrorKind.NOT_FOUND:
                return None
            raise
        return parse_print(data).name

    async def _first_search_page(self, card_name: str) -> dict | None:
        # !"name" is Scryfall's exact-name search; quotes cannot be escaped
        query = f'!"{card_name.replace(chr(34), "")}"'
        params = {"q": query, "unique": "prints", "order": "released", "dir": "desc"}
        try:
            return await self._get(f"{self.base_url}/cards/search", params)
        except SourceError as e:
            if e.kind is SourceErrorKind.NOT_FOUND:
                return None
            raise

    async def iter_prints(self, card_name: str) -> AsyncGenerator[PrintRecord, None]:
        """
        Yield every print of a card, newest first.

        Pages are fetched only as the caller keeps iterating. A name with no
        exact match is retried under its fuzzy-matched canonical name; a card
        that matches neither way yields nothing.
        """
        data = await self._first_search_page(card_name)
        if data is None:
            matched = await self.match_name(card_name)
            if matched is not None and matched != card_name:
                logger.info(
                    "CATALOG_FUZZY_MATCH", extra={"card_name": card_name, "matched": matched}
                )
                data = await self._first_search_page(matched)
        if data is None:
            logger.debug("CATALOG_NO_PRINTS", extra={"card_name": card_name})
            return

        pages = 1
        while True:
            if not isinstance(data, dict) or not isinstance(data.get("data"), list):
                raise SourceError(
                    SourceErrorKind.MALFORMED_RESPONSE, SOURCE_NAME, "search without data list"
                )

            for record in _newest_first([parse_print(card) for card in data["data"]]):
                yield record

            # next_page already carries the query string
            url = data.get("next_page") if data.get("has_more") else None
            if not url or pages >= MAX_SEARCH_PAGES:
                return
            data = await self._get(url)
            pages += 1

    async def get_prints(self, card_name: str) -> list[PrintRecord]:
        """Eager form of iter_prints."""
        return [record async for record in self.iter_prints(card_name)]
