"""Ledger aggregation package."""

from fintrack.aggregation.aggregator import (
    CATEGORY_PALETTE,
    BaseConversion,
    LedgerAggregator,
    category_color,
    subtract_months,
)
from fintrack.aggregation.context import (
    build_financial_context,
    build_simple_context,
    summarize_projects,
    summarize_wallet,
    to_json,
)

__all__ = [
    "CATEGORY_PALETTE",
    "BaseConversion",
    "LedgerAggregator",
    "build_financial_context",
    "build_simple_context",
    "category_color",
    "subtract_months",
    "summarize_projects",
    "summarize_wallet",
    "to_json",
]
