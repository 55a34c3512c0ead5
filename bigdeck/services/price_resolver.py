"""
Cross-source price resolver.

Turns a CardKey into a fully resolved PricePair:

1. Cache hit -> return the cached pair (no I/O)
2. Lookup already in flight for the key -> wait on it (coalescing)
3. Specific set -> fetch that print; done if both prices are known
4. Otherwise enumerate prints newest first and state up to
   max_fallback_prints of them, stopping at the first print with a direct
   secondary price
5. No direct hit -> best-seen tcg with a derived ck, or {Unknown, Unknown}
6. Cache with the positive TTL, or the negative TTL for fully Unknown
   results and deadline expiries

Per-key states: Absent -> Pending -> Cached-Fresh -> Cached-Expired -> Pending.
Invalidation returns a key to Absent. An invalidated in-flight lookup still
answers its existing waiters but never writes the cache.

INVARIANTS:
1. The cache is consulted before any network I/O
2. At most one lookup per key is in flight
3. Only cancellation escapes resolve(); every other failure becomes a pair
4. A cancelled lookup never writes the cache
5. At most max_concurrent_lookups keys are resolved at once; a key's deadline
   starts when it gets a slot
"""

import asyncio
import logging
import time
from collections.abc import Callable
from contextlib import aclosing
from dataclasses import dataclass, field

from bigdeck.config import PricingConfig
from bigdeck.models.failure import SourceError
from bigdeck.models.money import Money, is_money
from bigdeck.models.pricing import CardKey, PriceOrigin, PricePair
from bigdeck.services.fetcher import FetchResult, PriceFetcher, derive_secondary
from bigdeck.services.normalizer import normalize_key
from bigdeck.services.price_cache import PriceCache
from bigdeck.sources.base import CatalogSource, SecondarySource

logger = logging.getLogger(__name__)


@dataclass
class PendingLookup:
    """
    One in-flight resolution.

    Attributes:
        key: Key being resolved
        started_at: Epoch seconds when the lookup started
        task: Completion handle shared by every waiter
        waiters: Callers currently awaiting the task

    A lookup that no longer owns its key in the pending table was detached
    by invalidation; its result is still delivered but not cached.
    """

    key: CardKey
    started_at: float
    task: "asyncio.Task[PricePair]"
    waiters: int = 0


@dataclass
class _FallbackState:
    """What one resolution has learned so far. Survives a deadline expiry."""

    tried_sets: set[str] = field(default_factory=set)
    best_tcg: Money | None = None
    best_set: str = ""
    tried: int = 0
    outages: int = 0

    def record(self, set_code: str, result: FetchResult) -> None:
        self.tried_sets.add(set_code)
        if result.all_sources_unavailable:
            self.outages += 1
        # First priced print wins: requested set first, then newest
        tcg = result.pair.tcg
        if self.best_tcg is None and isinstance(tcg, Money):
            self.best_tcg = tcg
            self.best_set = set_code


class PriceResolver:
    """
    Resolves card keys to price pairs with caching, coalescing and fallback.

    The resolver is the only writer of its cache and pending table.
    """

    def __init__(
        self,
        catalog: CatalogSource,
        secondary: SecondarySource,
        config: PricingConfig | None = None,
        cache: PriceCache | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            catalog: Catalog source (print enumeration, primary price)
            secondary: Secondary price source
            config: Pricing options. Defaults to PricingConfig().
            cache: Cache to use. Defaults to a new PriceCache sized by config.
            clock: Epoch-seconds clock shared with the cache and fetcher
        """
        self.config = config or PricingConfig()
        self._clock = clock
        self.cache = (
            cache
            if cache is not None
            else PriceCache(max_entries=self.config.max_cache_entries, clock=clock)
        )
        self._catalog = catalog
        self._fetcher = PriceFetcher(
            catalog,
            secondary,
            fallback_multiplier=self.config.fallback_multiplier,
            clock=clock,
        )
        self._pending: dict[CardKey, PendingLookup] = {}
        self._lookup_slots = asyncio.Semaphore(self.config.max_concurrent_lookups)

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def resolve(self, card_name: str | None, set_code: str | None = None) -> PricePair:
        """
        Resolve prices for (name, set). An empty set means any print.

        Raises:
            asyncio.CancelledError: If the caller is cancelled
        """
        return await self.resolve_key(normalize_key(card_name, set_code))

    async def resolve_key(self, key: CardKey) -> PricePair:
        """Resolve an already-normalized key."""
        if not key.name:
            return PricePair.unknown(self._clock())

        entry = self.cache.get(key)
        if entry is not None:
            logger.debug("PRICE_CACHE_HIT", extra={"key": str(key)})
            return entry.pair

        lookup = self._pending.get(key)
        if lookup is None:
            lookup = self._start(key)
        else:
            logger.debug("PRICE_LOOKUP_COALESCED", extra={"key": str(key)})

        return await self._wait(lookup)

    def invalidate(self, card_name: str | None, set_code: str | None = None) -> bool:
        return self.invalidate_key(normalize_key(card_name, set_code))

    def invalidate_key(self, key: CardKey) -> bool:
        """
        Forget one key.

        An in-flight lookup for the key keeps running for its current
        waiters but will not populate the cache; the next resolve starts over.

        Returns:
            True if a cache entry was removed
        """
        self._pending.pop(key, None)
        return self.cache.invalidate(key)

    def invalidate_all(self) -> int:
        """
        Forget every key ("Refresh Price Cache").

        Returns:
            Number of cache entries removed
        """
        self._pending.clear()
        removed = self.cache.clear()
        logger.info("PRICE_CACHE_CLEARED", extra={"entries_removed": removed})
        return removed

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_pending(self, key: CardKey) -> bool:
        return key in self._pending

    # =========================================================================
    # COALESCING
    # =========================================================================

    def _start(self, key: CardKey) -> PendingLookup:
        task = asyncio.create_task(self._run(key), name=f"price-lookup:{key}")
        lookup = PendingLookup(key=key, started_at=self._clock(), task=task)
        self._pending[key] = lookup
        task.add_done_callback(lambda _task: self._release(lookup))
        return lookup

    def _release(self, lookup: PendingLookup) -> None:
        # A newer lookup may already own the slot after an invalidation
        if self._pending.get(lookup.key) is lookup:
            del self._pending[lookup.key]

    def _owns(self, key: CardKey) -> bool:
        lookup = self._pending.get(key)
        return lookup is not None and lookup.task is asyncio.current_task()

    async def _wait(self, lookup: PendingLookup) -> PricePair:
        task = lookup.task
        lookup.waiters += 1
        try:
            # shield: one waiter's cancellation must not cancel the shared task
            return await asyncio.shield(task)
        finally:
            lookup.waiters -= 1
            if lookup.waiters == 0 and not task.done():
                # Last waiter left: stop the source calls and free the slot
                logger.debug("PRICE_LOOKUP_CANCELLED", extra={"key": str(lookup.key)})
                self._release(lookup)
                task.cancel()

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    async def _run(self, key: CardKey) -> PricePair:
        # Waiting for a slot does not count against the deadline
        async with self._lookup_slots:
            return await self._run_with_deadline(key)

    async def _run_with_deadline(self, key: CardKey) -> PricePair:
        state = _FallbackState()
        ttl = self.config.positive_ttl

        try:
            async with asyncio.timeout(self.config.resolver_deadline):
                pair = await self._resolve_uncached(key, state)
        except TimeoutError:
            logger.warning(
                "PRICE_RESOLVE_DEADLINE",
                extra={
                    "key": str(key),
                    "deadline": self.config.resolver_deadline,
                    "prints_tried": state.tried,
                },
            )
            pair = self._finalize(state)
            ttl = self.config.negative_ttl
        except Exception:
            # Bug in a source adapter; answer Unknown and leave the cache alone
            logger.exception("PRICE_RESOLVE_FAILED", extra={"key": str(key)})
            return PricePair.unknown(self._clock())

        if pair.is_unknown:
            ttl = self.config.negative_ttl
            if state.outages:
                logger.warning(
                    "PRICE_SOURCES_UNAVAILABLE",
                    extra={
                        "key": str(key),
                        "outages": state.outages,
                        "prints_tried": state.tried,
                    },
                )

        if not self._owns(key):
            logger.debug("PRICE_RESULT_DISCARDED", extra={"key": str(key)})
        else:
            self.cache.put(key, pair, ttl)

        return pair

    async def _resolve_uncached(self, key: CardKey, state: _FallbackState) -> PricePair:
        if not key.is_wildcard:
            result = await self._fetcher.fetch(key.name, key.set_code)
            state.record(key.set_code, result)
            if result.pair.is_complete:
                return result.pair

        return await self._fallback(key, state)

    async def _fallback(self, key: CardKey, state: _FallbackState) -> PricePair:
        """Try other prints newest first until one has a direct secondary price."""
        limit = self.config.max_fallback_prints
        if limit == 0:
            return self._finalize(state)

        try:
            async with aclosing(self._catalog.iter_prints(key.name)) as prints:
                async for record in prints:
                    if record.set_code in state.tried_sets:
                        continue
                    if state.tried >= limit:
                        break
                    state.tried += 1

                    # The catalog spelling, which may differ from the key after a fuzzy match
                    result = await self._fetcher.fetch(
                        record.name, record.set_code, print_record=record
                    )
                    state.record(record.set_code, result)

                    # A direct hit needs its own tcg too, else the pair would
                    # carry a ck without a tcg
                    if result.pair.has_direct_secondary and is_money(result.pair.tcg):
                        return result.pair
        except SourceError as e:
            logger.warning(
                "CATALOG_ENUMERATION_FAILED",
                extra={"key": str(key), "kind": e.kind.value, "prints_tried": state.tried},
            )

        return self._finalize(state)

    def _finalize(self, state: _FallbackState) -> PricePair:
        """Best-seen tcg with a derived ck, or fully Unknown."""
        now = self._clock()
        if state.best_tcg is None:
            return PricePair.unknown(now)

        ck = derive_secondary(state.best_tcg, self.config.fallback_multiplier)
        return PricePair(
            tcg=state.best_tcg,
            ck=ck,
            tcg_source=PriceOrigin.CATALOG,
            ck_source=PriceOrigin.DERIVED if is_money(ck) else PriceOrigin.UNKNOWN,
            fetched_at=now,
            resolved_set=state.best_set,
        )
