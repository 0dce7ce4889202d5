"""
Financial Context for External Analysis

Builds the JSON-serialisable picture of the user's finances that is handed
to the AI-analysis service: the dashboard overview plus project and wallet
summaries.

DESIGN DECISION: The analysis service only ever sees what this module
emits. It gets computed numbers, never raw access to storage.
"""

import json
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

from fintrack.aggregation.aggregator import ZERO, percent_of, round_one_decimal
from fintrack.models.dashboard import (
    DashboardSnapshot,
    ProjectSummary,
    WalletSummary,
)
from fintrack.models.ledger import Account, Investment, Transaction


# (amount, currency) -> amount in the base currency
Conversion = Callable[[Decimal, Optional[str]], Decimal]


def _unconverted(amount: Decimal, currency: Optional[str]) -> Decimal:
    return amount


def summarize_projects(
    transactions: Iterable[Transaction],
    conversion: Optional[Conversion] = None,
) -> list[ProjectSummary]:
    """
    Revenue, cost and profit per project, in first-seen order.

    Transactions without a project are booked to "Personal".
    """
    conversion = conversion or _unconverted
    revenue: dict[str, Decimal] = {}
    cost: dict[str, Decimal] = {}

    for t in transactions:
        name = t.project_label
        revenue.setdefault(name, ZERO)
        cost.setdefault(name, ZERO)
        amount = conversion(t.amount, t.currency)
        if t.is_income:
            revenue[name] += amount
        else:
            cost[name] += amount

    summaries = []
    for name in revenue:
        profit = revenue[name] - cost[name]
        summaries.append(
            ProjectSummary(
                name=name,
                revenue=revenue[name],
                cost=cost[name],
                profit=profit,
                profit_margin=percent_of(profit, revenue[name]),
            )
        )
    return summaries


def summarize_wallet(
    accounts: Iterable[Account],
    investments: Iterable[Investment],
    conversion: Optional[Conversion] = None,
) -> WalletSummary:
    """Totals across accounts and investments (balances are not clamped here)."""
    conversion = conversion or _unconverted
    investments = list(investments)

    total_balance = sum((conversion(a.balance, a.currency) for a in accounts), ZERO)
    total_invested = sum((conversion(i.invested, i.currency) for i in investments), ZERO)
    total_current = sum((conversion(i.current_value, i.currency) for i in investments), ZERO)

    return WalletSummary(
        total_balance=total_balance,
        total_invested=total_invested,
        total_current_value=total_current,
        total_return=total_current - total_invested,
    )


def runway_months(balance: Decimal, monthly_expense: Decimal) -> Decimal:
    """How many months the balance covers at the current burn rate."""
    if monthly_expense <= 0:
        return ZERO
    return round_one_decimal(balance / monthly_expense)


def build_financial_context(
    dashboard: DashboardSnapshot,
    projects: Sequence[ProjectSummary] = (),
    wallet: Optional[WalletSummary] = None,
    accounts: Sequence[Account] = (),
    investments: Sequence[Investment] = (),
) -> dict:
    """
    Create the full financial snapshot for analysis.

    Amounts are emitted as floats; this is a reading aid for the
    analysis service, not a ledger.
    """
    wallet = wallet or WalletSummary()
    net_profit = sum((p.profit for p in projects), ZERO)

    return {
        "overview": {
            "net_worth": float(dashboard.net_worth),
            "monthly_income": float(dashboard.monthly_income),
            "monthly_expense": float(dashboard.monthly_expense),
            "savings_rate": float(dashboard.savings_rate),
            "base_currency": dashboard.base_currency,
            "using_offline_rates": dashboard.using_offline_rates,
            "last_updated": dashboard.generated_at.isoformat(),
        },
        "recent_transactions": [
            {
                "date": t.date.date().isoformat(),
                "description": t.description,
                "category": t.category_label,
                "project": t.project_label,
                "amount": float(t.signed_amount),
                "currency": t.currency,
            }
            for t in dashboard.recent_transactions
        ],
        "top_expenses": [
            {"name": c.name, "amount": float(c.amount)}
            for c in dashboard.top_expense_categories
        ],
        "net_worth_trend": [
            {"month": f"{p.year:04d}-{p.month:02d}", "cumulative": float(p.cumulative)}
            for p in dashboard.net_worth_trend
        ],
        "projects": [
            {
                "name": p.name,
                "revenue": float(p.revenue),
                "cost": float(p.cost),
                "profit": float(p.profit),
                "profit_margin": float(p.profit_margin),
            }
            for p in projects
        ],
        "accounts": [
            {
                "name": a.name,
                "balance": float(a.balance),
                "institution": a.institution,
            }
            for a in accounts
        ],
        "investments": [
            {
                "name": i.name,
                "invested": float(i.invested),
                "current_value": float(i.current_value),
                "return_percent": float(i.return_percent),
            }
            for i in investments
        ],
        "analysis": {
            "total_liquid_assets": float(wallet.total_balance),
            "total_investments": float(wallet.total_invested),
            "investment_return": float(wallet.total_return),
            "monthly_burn_rate": float(dashboard.monthly_expense),
            "runway_months": float(
                runway_months(wallet.total_balance, dashboard.monthly_expense)
            ),
            "is_project_profitable": net_profit > 0,
        },
    }


def build_simple_context(
    net_worth: Decimal,
    monthly_income: Decimal,
    monthly_expense: Decimal,
) -> dict:
    """Reduced context for when only the headline numbers are known."""
    return {
        "net_worth": float(net_worth),
        "monthly_income": float(monthly_income),
        "monthly_expense": float(monthly_expense),
        "savings_rate": float(percent_of(monthly_income - monthly_expense, monthly_income)),
        "runway_months": float(runway_months(net_worth, monthly_expense)),
    }


def to_json(context: dict) -> str:
    return json.dumps(context, indent=2, ensure_ascii=False)
