"""
Exchange Rate Services Package

Cache, live provider, offline fallback and the converter that ties them
together.
"""

from fintrack.services.rates.cache import DEFAULT_TTL, RateCache
from fintrack.services.rates.converter import CurrencyConverter
from fintrack.services.rates.exceptions import NetworkError, ParseError, RateError
from fintrack.services.rates.fallback import (
    DEFAULT_FALLBACK_RATES,
    IDENTITY_RATE,
    FallbackTable,
)
from fintrack.services.rates.provider import RateProvider

__all__ = [
    "DEFAULT_FALLBACK_RATES",
    "DEFAULT_TTL",
    "IDENTITY_RATE",
    "CurrencyConverter",
    "FallbackTable",
    "NetworkError",
    "ParseError",
    "RateCache",
    "RateError",
    "RateProvider",
]
