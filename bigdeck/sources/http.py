"""
Shared HTTP plumbing for price sources.

Translates httpx outcomes into SourceErrorKind:
- 429 -> RATE_LIMITED
- other 4xx -> NOT_FOUND
- 5xx, connection errors -> UNAVAILABLE
- per-attempt timeout -> TIMEOUT
- body is not JSON -> MALFORMED_RESPONSE

asyncio.CancelledError is never caught here.
"""

import asyncio
import time
from typing import Any

import httpx

from bigdeck.models.failure import SourceError, SourceErrorKind


def classify_status(status_code: int) -> SourceErrorKind | None:
    """Map an HTTP status to a failure kind, or None for success."""
    if status_code == 429:
        return SourceErrorKind.RATE_LIMITED
    if 400 <= status_code < 500:
        return SourceErrorKind.NOT_FOUND
    if status_code >= 500:
        return SourceErrorKind.UNAVAILABLE
    return None


async def get_json(
    url: str,
    *,
    source: str,
    timeout: float,
    client: httpx.AsyncClient | None = None,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """
    GET a URL and decode its JSON body.

    Args:
        url: Absolute URL
        source: Adapter name used in errors and logs
        timeout: Total per-attempt budget in seconds
        client: Optional shared client for connection reuse
        params: Query parameters (httpx encodes them)
        headers: Extra request headers

    Returns:
        Decoded JSON body

    Raises:
        SourceError: For every failure except cancellation
    """
    try:
        async with asyncio.timeout(timeout):
            if client is None:
                async with httpx.AsyncClient(
                    timeout=timeout, headers=headers, follow_redirects=True
                ) as own_client:
                    response = await own_client.get(url, params=params)
            else:
                response = await client.get(url, params=params, headers=headers, timeout=timeout)
    except TimeoutError as e:
        raise SourceError(SourceErrorKind.TIMEOUT, source, f"exceeded {timeout}s") from e
    except httpx.TimeoutException as e:
        raise SourceError(SourceErrorKind.TIMEOUT, source, type(e).__name__) from e
    except httpx.HTTPError as e:
        raise SourceError(SourceErrorKind.UNAVAILABLE, source, type(e).__name__) from e

    kind = classify_status(response.status_code)
    if kind is not None:
        raise SourceError(kind, source, f"HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as e:
        raise SourceError(SourceErrorKind.MALFORMED_RESPONSE, source, "invalid JSON") from e


class RequestThrottle:
    """
    Enforces a minimum spacing between requests to one upstream.

    Waiters are served one at a time in arrival order.
    """

    def __init__(self, min_interval: float) -> None:
        self.min_interval = min_interval
        self._lock = asyncio.Lock()
        self._last_request = float("-inf")

    async def wait(self) -> None:
        if self.min_interval <= 0:
            return
        async with self._lock:
            delay = self._last_request + self.min_interval - time.monotonic()
            if delay > 0:
                await asyncio.sleep(delay)
            self._last_request = time.monotonic()
