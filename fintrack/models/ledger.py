"""
Ledger Models for fintrack

These models define the schema of everything the storage layer hands us:
transactions, accounts, investments and budgets.

DESIGN DECISION: Ledger models are frozen. A recorded transaction is a fact;
aggregation reads it, nothing in the core ever edits it.

Source data is accepted as-is where the dashboard can cope with it
(negative balances, missing categories). Those are handled by the
aggregator, not rejected here.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


DEFAULT_CURRENCY = "RUB"
CURRENCY_CODE_PATTERN = r"^[A-Z]{3,5}$"
DEFAULT_PROJECT = "Personal"
UNKNOWN_CATEGORY = "Unknown"

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "Food",
    "Transport",
    "Entertainment",
    "Health",
    "Clothing",
    "Housing",
    "Education",
    "Other",
)


def _as_datetime(value):
    """Accept plain dates where a timestamp is expected."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    return value


def _upper_code(value):
    if isinstance(value, str):
        return value.strip().upper()
    return value


class Transaction(BaseModel):
    """
    A single recorded income or expense.

    `amount` is always non-negative; direction lives in `is_income`.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    date: datetime = Field(
        ...,
        description="When the transaction happened"
    )
    description: str = Field(
        default="",
        max_length=500,
    )
    category: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Category label; missing labels aggregate as 'Unknown'"
    )
    project: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Project the money belongs to"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Absolute amount in `currency`"
    )
    currency: str = Field(
        default=DEFAULT_CURRENCY,
        pattern=CURRENCY_CODE_PATTERN,
    )
    is_income: bool = Field(
        default=False,
        description="True for income, False for expense"
    )

    @field_validator('date', mode='before')
    @classmethod
    def normalize_date(cls, v):
        return _as_datetime(v)

    @field_validator('currency', mode='before')
    @classmethod
    def normalize_currency(cls, v):
        return _upper_code(v)

    @field_validator('description', mode='before')
    @classmethod
    def empty_description(cls, v):
        return "" if v is None else v

    @property
    def signed_amount(self) -> Decimal:
        """Income counts positive, expense negative."""
        return self.amount if self.is_income else -self.amount

    @property
    def category_label(self) -> str:
        return self.category or UNKNOWN_CATEGORY

    @property
    def project_label(self) -> str:
        return self.project or DEFAULT_PROJECT


class Account(BaseModel):
    """
    A money account (checking, savings, cash...).

    Balance may be negative in source data. Net worth clamps it to zero.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    balance: Decimal = Field(default=Decimal("0"))
    institution: str = Field(default="", max_length=200)
    currency: Optional[str] = Field(
        default=None,
        pattern=CURRENCY_CODE_PATTERN,
        description="Currency of the balance; None means the base currency"
    )

    @field_validator('currency', mode='before')
    @classmethod
    def normalize_currency(cls, v):
        return _upper_code(v) or None


class Investment(BaseModel):
    """A holding with what was put in and what it is worth now."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    invested: Decimal = Field(default=Decimal("0"))
    current_value: Decimal = Field(default=Decimal("0"))
    return_percent: Decimal = Field(default=Decimal("0"))
    currency: Optional[str] = Field(
        default=None,
        pattern=CURRENCY_CODE_PATTERN,
        description="Currency of the values; None means the base currency"
    )

    @field_validator('currency', mode='before')
    @classmethod
    def normalize_currency(cls, v):
        return _upper_code(v) or None

    @property
    def gain(self) -> Decimal:
        return self.current_value - self.invested


class Budget(BaseModel):
    """Spending limit for a category over a period."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    category: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)
    start_date: datetime = Field(default_factory=datetime.now)
    end_date: Optional[datetime] = None
    currency: str = Field(default=DEFAULT_CURRENCY, pattern=CURRENCY_CODE_PATTERN)

    @field_validator('start_date', 'end_date', mode='before')
    @classmethod
    def normalize_dates(cls, v):
        return _as_datetime(v)

    @field_validator('currency', mode='before')
    @classmethod
    def normalize_currency(cls, v):
        return _upper_code(v)

    @model_validator(mode='after')
    def validate_period(self) -> 'Budget':
        """Validate date relationships."""
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("Budget end date cannot be before start date")
        return self


class LedgerSnapshot(BaseModel):
    """
    Read-only bundle of the whole ledger at one point in time.

    Owned by the storage layer; borrowed by the aggregator for one pass.
    """
    model_config = ConfigDict(frozen=True)

    transactions: tuple[Transaction, ...] = ()
    accounts: tuple[Account, ...] = ()
    investments: tuple[Investment, ...] = ()
    taken_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_empty(self) -> bool:
        return not (self.transactions or self.accounts or self.investments)

    def currencies(self) -> set[str]:
        """Every currency code mentioned by the ledger."""
        codes = {t.currency for t in self.transactions}
        codes.update(a.currency for a in self.accounts if a.currency)
        codes.update(i.currency for i in self.investments if i.currency)
        return codes
