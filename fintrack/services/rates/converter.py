"""
Currency Converter

The public face of the rates package. Given a pair it answers with a rate,
using (in order): identity, the cache, the live source, the fallback table.

CRITICAL: A conversion never fails because the network did. Rate source
errors are absorbed here and answered with an offline rate. They are NOT
hidden: the quote carries its source, and `using_offline_rates` tells the
UI that the numbers on screen are approximate.

Fallback rates are never cached. Once the live source is back, the next
lookup picks up a real quote.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Optional
from uuid import UUID

from fintrack.models.rates import (
    CurrencyPair,
    RateQuote,
    RateSource,
    utc_now,
)
from fintrack.services.rates.cache import RateCache
from fintrack.services.rates.exceptions import RateError
from fintrack.services.rates.fallback import IDENTITY_RATE, FallbackTable
from fintrack.services.rates.provider import RateProvider

if TYPE_CHECKING:
    from fintrack.audit import AuditLogger


class CurrencyConverter:
    """
    Resolves exchange rates and converts amounts.

    Construct once per process and pass it to whoever needs it;
    the cache it wraps is the only state carried between dashboard refreshes.
    """

    def __init__(
        self,
        cache: RateCache,
        provider: RateProvider,
        fallback: Optional[FallbackTable] = None,
        audit_logger: Optional["AuditLogger"] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._cache = cache
        self._provider = provider
        self._fallback = fallback if fallback is not None else FallbackTable()
        self._audit_logger = audit_logger
        self._clock = clock
        self._using_offline_rates = False

    @property
    def using_offline_rates(self) -> bool:
        """True if the most recent non-identity lookup fell back to offline rates."""
        return self._using_offline_rates

    async def quote(
        self,
        from_currency: str,
        to_currency: str,
        correlation_id: Optional[UUID] = None,
    ) -> RateQuote:
        """
        Resolve the rate for (from_currency -> to_currency) with its provenance.
        """
        pair = CurrencyPair.of(from_currency, to_currency)

        if pair.is_identity:
            return RateQuote(pair=pair, rate=IDENTITY_RATE, source=RateSource.IDENTITY)

        entry = self._cache.get(pair, self._clock())
        if entry is not None:
            self._using_offline_rates = False
            if self._audit_logger:
                await self._audit_logger.log_rate_cache_hit(
                    pair=pair.key,
                    rate=str(entry.rate),
                    correlation_id=correlation_id,
                )
            return RateQuote(
                pair=pair,
                rate=entry.rate,
                source=RateSource.CACHED,
                fetched_at=entry.fetched_at,
            )

        # The cache lock is not held here; the fetch may take seconds
        try:
            rate = await self._provider.fetch(pair)
        except RateError as e:
            return await self._fallback_quote(pair, e, correlation_id)

        entry = self._cache.put(pair, rate, self._clock())
        self._using_offline_rates = False
        if self._audit_logger:
            await self._audit_logger.log_rate_fetched(
                pair=pair.key,
                rate=str(rate),
                correlation_id=correlation_id,
            )
        return RateQuote(
            pair=pair,
            rate=entry.rate,
            source=RateSource.LIVE,
            fetched_at=entry.fetched_at,
        )

    async def _fallback_quote(
        self,
        pair: CurrencyPair,
        error: RateError,
        correlation_id: Optional[UUID],
    ) -> RateQuote:
        rate = self._fallback.resolve(pair)
        self._using_offline_rates = True

        if self._audit_logger:
            await self._audit_logger.log_rate_fetch_failed(
                pair=pair.key,
                error_type=type(error).__name__,
                error_message=str(error),
                correlation_id=correlation_id,
            )
            await self._audit_logger.log_fallback_rate_used(
                pair=pair.key,
                rate=str(rate),
                reason=str(error),
                correlation_id=correlation_id,
            )

        return RateQuote(
            pair=pair,
            rate=rate,
            source=RateSource.FALLBACK,
            error=str(error),
        )

    async def rate(self, from_currency: str, to_currency: str) -> Decimal:
        """Units of `to_currency` per one unit of `from_currency`."""
        quote = await self.quote(from_currency, to_currency)
        return quote.rate

    async def convert(
        self,
        amount: Decimal,
        from_currency: str,
        to_currency: str,
    ) -> Decimal:
        """
        Convert `amount` between currencies.

        No rounding is applied; formatting is the presentation layer's job.
        """
        if CurrencyPair.of(from_currency, to_currency).is_identity:
            return amount
        return amount * await self.rate(from_currency, to_currency)
