"""
Data Models Package

This package contains all Pydantic models used by fintrack.
All data flowing through the system must conform to these schemas.
"""

from fintrack.models.ledger import (
    DEFAULT_CATEGORIES,
    DEFAULT_CURRENCY,
    DEFAULT_PROJECT,
    UNKNOWN_CATEGORY,
    Account,
    Budget,
    Investment,
    LedgerSnapshot,
    Transaction,
)
from fintrack.models.rates import (
    SUPPORTED_CURRENCIES,
    Currency,
    CurrencyPair,
    RateEntry,
    RateQuote,
    RateSource,
)
from fintrack.models.dashboard import (
    CategoryExpense,
    DashboardSnapshot,
    ProjectSummary,
    TrendPoint,
    WalletSummary,
)
from fintrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORIES",
    "DEFAULT_CURRENCY",
    "DEFAULT_PROJECT",
    "UNKNOWN_CATEGORY",
    "Account",
    "Budget",
    "Investment",
    "LedgerSnapshot",
    "Transaction",
    # Rate models
    "SUPPORTED_CURRENCIES",
    "Currency",
    "CurrencyPair",
    "RateEntry",
    "RateQuote",
    "RateSource",
    # Dashboard models
    "CategoryExpense",
    "DashboardSnapshot",
    "ProjectSummary",
    "TrendPoint",
    "WalletSummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
