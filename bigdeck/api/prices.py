"""
Pricing API endpoints.

Card prices, decklist and container totals, and the "Refresh Price Cache"
action. Prices are rendered at this boundary: "$X.YZ" or "N/A".
A totals response with unpriced > 0 is still a success.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from bigdeck.api.deps import get_pricing_service
from bigdeck.models.money import format_price
from bigdeck.models.pricing import LineItem, PriceOrigin, PricePair, PriceTotals
from bigdeck.services.normalizer import normalize_name, normalize_set
from bigdeck.services.price_aggregator import InventorySetLookup
from bigdeck.services.pricing_service import PricingService

router = APIRouter(prefix="/pricing", tags=["pricing"])


class LineItemModel(BaseModel):
    """One decklist or container line."""

    model_config = ConfigDict(populate_by_name=True)

    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)] = Field(
        ..., examples=["Sol Ring"]
    )
    quantity: int = Field(default=1, ge=1)
    set_code: str = Field(
        default="",
        alias="set",
        description="Set code; empty means any print",
        examples=["C21"],
    )

    def to_line_item(self) -> LineItem:
        return LineItem(name=self.name, quantity=self.quantity, set_code=self.set_code)


class PriceResponse(BaseModel):
    """Resolved prices for one card."""

    name: str
    set_code: str = Field(..., description="Requested set after normalization, '' for any")
    tcg: str = Field(..., examples=["$2.00", "N/A"])
    ck: str = Field(..., examples=["$2.30", "N/A"])
    tcg_source: PriceOrigin
    ck_source: PriceOrigin
    resolved_set: str = Field(default="", description="Print that supplied the price")
    fetched_at: float


class LinePriceResponse(BaseModel):
    """Per-line breakdown of a totals response."""

    name: str
    set_code: str
    quantity: int
    tcg: str
    ck: str
    ck_source: PriceOrigin
    resolved_set: str = ""


class TotalsResponse(BaseModel):
    """Aggregate prices of a decklist or container."""

    tcg_total: str = Field(..., examples=["$6.00"])
    ck_total: str = Field(..., examples=["$6.90"])
    unpriced: int = Field(..., description="Lines with at least one unknown price")
    lines: list[LinePriceResponse] = Field(default_factory=list)


class DecklistPriceRequest(BaseModel):
    """Price a decklist given as text or as parsed lines."""

    text: str | None = Field(
        default=None,
        description="Raw decklist text",
        examples=["3 Sol Ring (C21)\n1 Counterspell"],
    )
    lines: list[LineItemModel] | None = None
    known_sets: dict[str, str] = Field(
        default_factory=dict,
        description="Inventory hints: card name -> owned set, used for lines without a set",
    )


class ContainerPriceRequest(BaseModel):
    """Price container contents."""

    items: list[LineItemModel] = Field(default_factory=list)
    known_sets: dict[str, str] = Field(default_factory=dict)


class CacheRefreshResponse(BaseModel):
    entries_removed: int


class CacheStatsResponse(BaseModel):
    entries: int
    max_entries: int | None = None
    hits: int
    misses: int
    pending: int


def _price_response(name: str, set_code: str, pair: PricePair) -> PriceResponse:
    return PriceResponse(
        name=name,
        set_code=set_code,
        tcg=format_price(pair.tcg),
        ck=format_price(pair.ck),
        tcg_source=pair.tcg_source,
        ck_source=pair.ck_source,
        resolved_set=pair.resolved_set,
        fetched_at=pair.fetched_at,
    )


def _totals_response(totals: PriceTotals) -> TotalsResponse:
    return TotalsResponse(
        tcg_total=format_price(totals.tcg_total),
        ck_total=format_price(totals.ck_total),
        unpriced=totals.unpriced,
        lines=[
            LinePriceResponse(
                name=line.item.name,
                set_code=line.item.set_code,
                quantity=line.item.quantity,
                tcg=format_price(line.pair.tcg),
                ck=format_price(line.pair.ck),
                ck_source=line.pair.ck_source,
                resolved_set=line.pair.resolved_set,
            )
            for line in totals.lines
        ],
    )


def _known_sets_lookup(known_sets: dict[str, str]) -> InventorySetLookup | None:
    """Turn request inventory hints into a lookup keyed by normalized name."""
    if not known_sets:
        return None
    by_name = {
        normalize_name(name): normalize_set(set_code) for name, set_code in known_sets.items()
    }
    return lambda card_name: by_name.get(normalize_name(card_name)) or None


@router.get("/cards/{card_name:path}", response_model=PriceResponse)
async def get_card_price(
    card_name: str,
    service: Annotated[PricingService, Depends(get_pricing_service)],
    set_code: Annotated[str, Query(alias="set")] = "",
) -> PriceResponse:
    """
    Resolve tcg and ck prices for a card.

    Without a set, the newest print with a Card Kingdom price is used. The
    name may contain "/" (split cards such as "Fire // Ice").
    """
    if not card_name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Card name cannot be empty",
        )

    pair = await service.resolve(card_name, set_code)
    return _price_response(card_name.strip(), normalize_set(set_code), pair)


@router.post("/decklist", response_model=TotalsResponse)
async def price_decklist(
    request: DecklistPriceRequest,
    service: Annotated[PricingService, Depends(get_pricing_service)],
) -> TotalsResponse:
    """
    Price a decklist.

    Accepts raw text ("3 Sol Ring (C21)") or parsed lines. Lines without a
    set use known_sets, then any print.
    """
    if request.lines is not None:
        lines: str | list[LineItem] = [line.to_line_item() for line in request.lines]
    elif request.text is not None and request.text.strip():
        lines = request.text
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide decklist text or lines",
        )

    totals = await service.price_decklist(lines, _known_sets_lookup(request.known_sets))
    return _totals_response(totals)


@router.post("/container", response_model=TotalsResponse)
async def price_container(
    request: ContainerPriceRequest,
    service: Annotated[PricingService, Depends(get_pricing_service)],
) -> TotalsResponse:
    """Price the contents of a container."""
    totals = await service.price_container(
        [item.to_line_item() for item in request.items],
        _known_sets_lookup(request.known_sets),
    )
    return _totals_response(totals)


@router.post("/cache/refresh", response_model=CacheRefreshResponse)
async def refresh_price_cache(
    service: Annotated[PricingService, Depends(get_pricing_service)],
) -> CacheRefreshResponse:
    """
    Refresh Price Cache.

    Drops every cached price; the next lookup of any card contacts the sources.
    """
    return CacheRefreshResponse(entries_removed=service.invalidate_all())


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def get_cache_stats(
    service: Annotated[PricingService, Depends(get_pricing_service)],
) -> CacheStatsResponse:
    """Cache size, hit/miss counters and in-flight lookups."""
    return CacheStatsResponse(**service.cache_stats())
