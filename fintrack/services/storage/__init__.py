"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements local JSON documents, but designed to be swappable.
"""

from fintrack.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    StorageError,
)
from fintrack.services.storage.json_store import (
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "StorageError",
    # Implementations
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
    "JsonLinesAuditStorage",
]
