"""
Source failure classification.

External price sources fail in a small number of ways. Adapters translate
every transport or parse problem into one of these kinds so that callers
never inspect httpx exceptions or status codes.

Propagation:
- Sources: raise SourceError(kind)
- Fetcher: absorbs SourceError into Unknown price fields
- Resolver: surfaces only cancellation (asyncio.CancelledError)
- Aggregator: never raises; counts unpriced lines instead
"""

from enum import Enum


class SourceErrorKind(str, Enum):
    """Classification of external source failures."""

    # The source has no such card / print
    NOT_FOUND = "not_found"

    # HTTP 429 from the source
    RATE_LIMITED = "rate_limited"

    # 5xx or network failure
    UNAVAILABLE = "unavailable"

    # Per-attempt timeout elapsed
    TIMEOUT = "timeout"

    # Caller cancelled the lookup
    CANCELLED = "cancelled"

    # Body could not be decoded or had the wrong shape
    MALFORMED_RESPONSE = "malformed_response"


class SourceError(Exception):
    """
    Raised by source adapters for any failed lookup.

    Attributes:
        kind: Classification of the failure
        source: Adapter name ("catalog" or "secondary")
        detail: Technical detail for logs (status code, exception type)
    """

    def __init__(self, kind: SourceErrorKind, source: str, detail: str | None = None):
        self.kind = kind
        self.source = source
        self.detail = detail
        message = f"{source}: {kind.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
