"""
Dashboard Models

The immutable values the aggregation core hands to the presentation layer
and to the AI-analysis context builder.

DESIGN DECISION: A snapshot has no identity beyond "latest computed".
Every refresh produces a fresh one; nothing holds on to old snapshots.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from fintrack.models.ledger import Transaction


ZERO = Decimal("0")


class CategoryExpense(BaseModel):
    """Total spent in one category inside the dashboard window."""
    model_config = ConfigDict(frozen=True)

    name: str
    amount: Decimal = Field(..., ge=0)
    color: str = Field(
        ...,
        description="Palette colour, stable for the same category name"
    )


class TrendPoint(BaseModel):
    """One active month of the net worth trend."""
    model_config = ConfigDict(frozen=True)

    year: int
    month: int = Field(..., ge=1, le=12)
    label: str = Field(..., description="Short month name, e.g. 'Jan'")
    net_flow: Decimal = Field(..., description="Income minus expense for the month")
    cumulative: Decimal = Field(..., description="Running total up to this month")


class DashboardSnapshot(BaseModel):
    """
    Everything the dashboard shows, computed in one aggregation pass.

    Sequences are bounded by the limits the pass was run with:
    `recent_transactions` newest first, `top_expense_categories`
    largest first, `net_worth_trend` oldest month first.
    """
    model_config = ConfigDict(frozen=True)

    generated_at: datetime = Field(default_factory=datetime.now)
    base_currency: Optional[str] = Field(
        default=None,
        description="Currency amounts were converted to; None if unconverted"
    )

    net_worth: Decimal = ZERO
    monthly_income: Decimal = ZERO
    monthly_expense: Decimal = ZERO
    savings_rate: Decimal = Field(
        default=ZERO,
        description="Percent of income kept, one decimal place"
    )

    recent_transactions: tuple[Transaction, ...] = ()
    top_expense_categories: tuple[CategoryExpense, ...] = ()
    net_worth_trend: tuple[TrendPoint, ...] = ()

    using_offline_rates: bool = Field(
        default=False,
        description="True if any conversion in this pass used fallback rates"
    )

    @classmethod
    def empty(
        cls,
        generated_at: Optional[datetime] = None,
        base_currency: Optional[str] = None,
    ) -> "DashboardSnapshot":
        """Dashboard for a ledger with no data at all."""
        return cls(
            generated_at=generated_at or datetime.now(),
            base_currency=base_currency,
        )

    @property
    def monthly_net(self) -> Decimal:
        return self.monthly_income - self.monthly_expense

    @property
    def trend_values(self) -> list[Decimal]:
        return [point.cumulative for point in self.net_worth_trend]


class ProjectSummary(BaseModel):
    """Revenue and cost booked against one project."""
    model_config = ConfigDict(frozen=True)

    name: str
    revenue: Decimal = ZERO
    cost: Decimal = ZERO
    profit: Decimal = ZERO
    profit_margin: Decimal = Field(
        default=ZERO,
        description="Profit as percent of revenue, one decimal place"
    )


class WalletSummary(BaseModel):
    """Totals across accounts and investments."""
    model_config = ConfigDict(frozen=True)

    total_balance: Decimal = ZERO
    total_invested: Decimal = ZERO
    total_current_value: Decimal = ZERO
    total_return: Decimal = ZERO
