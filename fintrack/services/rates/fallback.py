"""
Offline Fallback Rates

Baseline approximations used when no live quote can be obtained.

DESIGN DECISION: Resolution "fails open". An unknown pair resolves to 1
rather than raising, so a conversion never blocks the dashboard. The price
is silently wrong numbers for unsupported pairs, which is why callers get
the FALLBACK source on the quote and can flag it.

Only "to base" pairs are stored. Reverse pairs are derived by inversion at
lookup time.
"""

from decimal import Decimal
from typing import Mapping, Optional

from fintrack.models.rates import CurrencyPair


IDENTITY_RATE = Decimal("1")

DEFAULT_FALLBACK_RATES: dict[CurrencyPair, Decimal] = {
    CurrencyPair.of("USD", "RUB"): Decimal("90"),
    CurrencyPair.of("EUR", "RUB"): Decimal("98"),
    CurrencyPair.of("GBP", "RUB"): Decimal("115"),
    CurrencyPair.of("JPY", "RUB"): Decimal("0.6"),
    CurrencyPair.of("CNY", "RUB"): Decimal("12.5"),
    CurrencyPair.of("KRW", "RUB"): Decimal("0.07"),
}


class FallbackTable:
    """
    Static pair -> rate table with inverse lookup.
    """

    def __init__(self, rates: Optional[Mapping[CurrencyPair, Decimal]] = None):
        table = dict(DEFAULT_FALLBACK_RATES if rates is None else rates)
        for pair, rate in table.items():
            if rate <= 0:
                raise ValueError(f"Fallback rate for {pair} must be positive")
        self._rates = table

    def lookup(self, pair: CurrencyPair) -> Optional[Decimal]:
        """
        Direct entry first, then the inverse of the reverse entry.

        Returns None if neither direction is known.
        """
        if pair.is_identity:
            return IDENTITY_RATE
        direct = self._rates.get(pair)
        if direct is not None:
            return direct
        reverse = self._rates.get(pair.reversed())
        if reverse is not None:
            return IDENTITY_RATE / reverse
        return None

    def resolve(self, pair: CurrencyPair) -> Decimal:
        """Like lookup, but unknown pairs resolve to 1."""
        rate = self.lookup(pair)
        return IDENTITY_RATE if rate is None else rate

    def __contains__(self, pair: CurrencyPair) -> bool:
        return pair in self._rates

    def __len__(self) -> int:
        return len(self._rates)
