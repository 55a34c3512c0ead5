"""
Secondary (Card Kingdom) price source.

Reads the backend price proxy:

    GET /api/prices/{name}/{set}  ->  {"tcg": "$X.YZ" | "N/A", "ck": "$X.YZ" | "N/A"}

Only the "ck" field is used. Older proxy builds named it "cardkingdom";
both spellings are accepted, "ck" wins when both are present.
"""

from typing import Any
from urllib.parse import quote

import httpx

from bigdeck.config import settings
from bigdeck.models.failure import SourceError, SourceErrorKind
from bigdeck.models.money import Money, Price
from bigdeck.sources.http import get_json

SOURCE_NAME = "secondary"

SECONDARY_FIELDS = ("ck", "cardkingdom")


def build_price_path(card_name: str, set_code: str) -> str:
    """Path for one print. Both segments are fully percent-encoded (including "/")."""
    return f"/api/prices/{quote(card_name, safe='')}/{quote(set_code, safe='')}"


def parse_secondary(data: Any) -> Price:
    """
    Extract the ck price from a proxy response.

    Raises:
        SourceError: MALFORMED_RESPONSE if the body is not an object
    """
    if not isinstance(data, dict):
        raise SourceError(SourceErrorKind.MALFORMED_RESPONSE, SOURCE_NAME, "expected object")

    for field_name in SECONDARY_FIELDS:
        if field_name in data:
            return Money.parse(data[field_name])
    return Money.parse(None)


class ProxySecondary:
    """Secondary source backed by the BigDeck price proxy."""

    name = SOURCE_NAME

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 3.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the proxy client.

        Args:
            base_url: Proxy base URL. Defaults to settings.secondary_base_url.
            timeout: Per-attempt timeout in seconds.
            client: Optional shared httpx client for connection reuse.
        """
        self.base_url = (base_url or settings.secondary_base_url).rstrip("/")
        self.timeout = timeout
        self._client = client

    async def get_secondary(self, card_name: str, set_code: str) -> Price:
        """
        Fetch the ck price for one print.

        Returns:
            Money, or UNKNOWN when the proxy reports "N/A"

        Raises:
            SourceError: On transport failure or malformed body
        """
        url = f"{self.base_url}{build_price_path(card_name, set_code)}"
        data = await get_json(
            url,
            source=SOURCE_NAME,
            timeout=self.timeout,
            client=self._client,
            headers={"Accept": "application/json"},
        )
        return parse_secondary(data)
