"""
Exchange Rate Models

These models describe everything the conversion engine knows about a rate:
which direction it converts, where the number came from, and when.

DESIGN DECISION: A pair is DIRECTIONAL. (USD, RUB) and (RUB, USD) are
different pairs with different cache entries. Reverse rates are only ever
derived from the offline fallback table, never from the cache.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    """Timezone-aware 'now' used for every rate timestamp."""
    return datetime.now(timezone.utc)


class RateSource(str, Enum):
    """
    Where a resolved rate came from.

    Only FALLBACK means degraded accuracy.
    """
    IDENTITY = "identity"   # Same currency on both sides
    LIVE = "live"           # Just fetched from the rate source
    CACHED = "cached"       # Fetched earlier, still inside the TTL
    FALLBACK = "fallback"   # Offline table (or identity for unknown pairs)


class Currency(BaseModel):
    """A currency the tracker knows how to display."""
    model_config = ConfigDict(frozen=True)

    code: str = Field(..., min_length=3, max_length=5)
    name: str
    symbol: str


SUPPORTED_CURRENCIES: tuple[Currency, ...] = (
    Currency(code="RUB", name="Russian Ruble", symbol="₽"),
    Currency(code="USD", name="US Dollar", symbol="$"),
    Currency(code="EUR", name="Euro", symbol="€"),
    Currency(code="GBP", name="Pound Sterling", symbol="£"),
    Currency(code="JPY", name="Japanese Yen", symbol="¥"),
    Currency(code="CNY", name="Chinese Yuan", symbol="¥"),
    Currency(code="KRW", name="South Korean Won", symbol="₩"),
)


class CurrencyPair(BaseModel):
    """
    Ordered (from, to) pair of currency codes.

    Frozen so it can be used as a dictionary key. Codes are
    upper-cased on the way in, so "usd" and "USD" are the same currency.
    """
    model_config = ConfigDict(frozen=True)

    from_currency: str = Field(
        ...,
        pattern=r"^[A-Z]{3,5}$",
        description="Currency the amount is expressed in"
    )
    to_currency: str = Field(
        ...,
        pattern=r"^[A-Z]{3,5}$",
        description="Currency the amount is converted to"
    )

    @field_validator('from_currency', 'to_currency', mode='before')
    @classmethod
    def normalize_code(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @classmethod
    def of(cls, from_currency: str, to_currency: str) -> "CurrencyPair":
        return cls(from_currency=from_currency, to_currency=to_currency)

    @property
    def is_identity(self) -> bool:
        return self.from_currency == self.to_currency

    @property
    def key(self) -> str:
        return f"{self.from_currency}_{self.to_currency}"

    def reversed(self) -> "CurrencyPair":
        return CurrencyPair(
            from_currency=self.to_currency,
            to_currency=self.from_currency,
        )

    def __str__(self) -> str:
        return self.key


class RateEntry(BaseModel):
    """
    A successfully fetched rate.

    Entries are never mutated: a newer fetch replaces the whole entry.
    """
    model_config = ConfigDict(frozen=True)

    pair: CurrencyPair
    rate: Decimal = Field(
        ...,
        gt=0,
        description="Units of to_currency per one unit of from_currency"
    )
    fetched_at: datetime = Field(
        default_factory=utc_now,
        description="When the rate was fetched (UTC)"
    )

    def age(self, now: datetime) -> timedelta:
        return now - self.fetched_at

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        """A cached entry is valid while its age is strictly below the TTL."""
        return self.age(now) < ttl


class RateQuote(BaseModel):
    """
    The result of resolving a rate, with its provenance.

    Callers use `is_fallback` to tell the user that numbers were
    computed with offline rates instead of hiding it.
    """
    model_config = ConfigDict(frozen=True)

    pair: CurrencyPair
    rate: Decimal = Field(..., gt=0)
    source: RateSource
    fetched_at: Optional[datetime] = Field(
        default=None,
        description="Fetch time for live/cached quotes"
    )
    error: Optional[str] = Field(
        default=None,
        description="Why the live source was not used (fallback only)"
    )

    @property
    def is_fallback(self) -> bool:
        return self.source == RateSource.FALLBACK

    @property
    def is_live(self) -> bool:
        return self.source in (RateSource.LIVE, RateSource.CACHED)
