"""Services package."""

from fintrack.services.rates import (
    CurrencyConverter,
    FallbackTable,
    NetworkError,
    ParseError,
    RateCache,
    RateError,
    RateProvider,
)
from fintrack.services.storage import (
    AuditStorageInterface,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
    LedgerStorageInterface,
    StorageError,
)

__all__ = [
    # Rate services
    "CurrencyConverter",
    "FallbackTable",
    "NetworkError",
    "ParseError",
    "RateCache",
    "RateError",
    "RateProvider",
    # Storage services
    "AuditStorageInterface",
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
    "JsonLinesAuditStorage",
    "LedgerStorageInterface",
    "StorageError",
]
