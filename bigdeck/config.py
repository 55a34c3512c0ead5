from dataclasses import dataclass
from decimal import Decimal
from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_parse_none_str="none")

    app_name: str = "BigDeck"

    catalog_base_url: str = "https://api.scryfall.com"

    # Backend proxy serving /api/prices/{name}/{set}
    secondary_base_url: str = "http://localhost:3000"

    user_agent: str = "BigDeck/1.0"

    # =========================================================================
    # PRICING (all durations in milliseconds)
    # =========================================================================

    positive_ttl_ms: int = Field(default=43_200_000, gt=0)
    negative_ttl_ms: int = Field(default=300_000, gt=0)

    # None disables deriving ck from tcg (FALLBACK_MULTIPLIER=none)
    fallback_multiplier: Annotated[Decimal, Field(gt=0)] | None = Decimal("1.15")

    max_fallback_prints: int = Field(default=10, ge=0)
    catalog_timeout_ms: int = Field(default=5_000, gt=0)
    secondary_timeout_ms: int = Field(default=3_000, gt=0)
    resolver_deadline_ms: int = Field(default=15_000, gt=0)
    max_cache_entries: Annotated[int, Field(gt=0)] | None = 10_000

    # Scryfall asks clients to keep 50-100 ms between requests
    catalog_min_interval_ms: int = Field(default=100, ge=0)

    # Lookups past this wait before their deadline starts
    max_concurrent_lookups: int = Field(default=8, gt=0)


settings = Settings()


# =============================================================================
# RESOLVER CONFIGURATION
# =============================================================================


@dataclass(frozen=True, slots=True)
class PricingConfig:
    """
    Validated pricing options in seconds, as consumed by the pricing core.

    Build from Settings with PricingConfig.from_settings(), or construct
    directly in tests.
    """

    positive_ttl: float = 43_200.0
    negative_ttl: float = 300.0
    fallback_multiplier: Decimal | None = Decimal("1.15")
    max_fallback_prints: int = 10
    catalog_timeout: float = 5.0
    secondary_timeout: float = 3.0
    resolver_deadline: float = 15.0
    max_cache_entries: int | None = 10_000
    max_concurrent_lookups: int = 8

    def __post_init__(self) -> None:
        if self.positive_ttl <= 0 or self.negative_ttl <= 0:
            raise ValueError("Cache TTLs must be positive")
        if self.fallback_multiplier is not None:
            multiplier = Decimal(str(self.fallback_multiplier))
            if not multiplier.is_finite() or multiplier <= 0:
                raise ValueError("fallback_multiplier must be positive or None")
            object.__setattr__(self, "fallback_multiplier", multiplier)
        if self.max_fallback_prints < 0:
            raise ValueError("max_fallback_prints must be >= 0")
        if min(self.catalog_timeout, self.secondary_timeout, self.resolver_deadline) <= 0:
            raise ValueError("Timeouts must be positive")
        if self.max_cache_entries is not None and self.max_cache_entries <= 0:
            raise ValueError("max_cache_entries must be positive or None")
        if self.max_concurrent_lookups <= 0:
            raise ValueError("max_concurrent_lookups must be positive")

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "PricingConfig":
        s = source or settings
        return cls(
            positive_ttl=s.positive_ttl_ms / 1000,
            negative_ttl=s.negative_ttl_ms / 1000,
            fallback_multiplier=s.fallback_multiplier,
            max_fallback_prints=s.max_fallback_prints,
            catalog_timeout=s.catalog_timeout_ms / 1000,
            secondary_timeout=s.secondary_timeout_ms / 1000,
            resolver_deadline=s.resolver_deadline_ms / 1000,
            max_cache_entries=s.max_cache_entries,
            max_concurrent_lookups=s.max_concurrent_lookups,
        )
