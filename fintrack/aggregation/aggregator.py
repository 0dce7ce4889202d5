"""
Ledger Aggregation Engine

DESIGN DECISION: Aggregation is DETERMINISTIC.
Given a ledger snapshot, a clock reading and a set of rates, the dashboard
numbers are fully determined. The only state carried between calls lives in
the rate cache behind the converter.

A pass runs in two phases:
1. Resolve every rate the ledger needs (the only step that may wait on I/O)
2. Compute all metrics synchronously from the snapshot and those rates

Bad source data is handled, never rejected:
- Missing category -> "Unknown"
- Negative balances -> clamped to zero for net worth
"""

import asyncio
import calendar
import decimal
import hashlib
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Iterable, Optional, Sequence
from uuid import UUID

from fintrack.config import DashboardSettings, get_settings
from fintrack.models.dashboard import (
    CategoryExpense,
    DashboardSnapshot,
    TrendPoint,
)
from fintrack.models.ledger import LedgerSnapshot, Transaction
from fintrack.models.rates import RateQuote
from fintrack.services.rates import CurrencyConverter


ZERO = Decimal("0")
HUNDRED = Decimal("100")
ONE_DECIMAL = Decimal("0.1")

CATEGORY_PALETTE: tuple[str, ...] = (
    "#C0C0C0",
    "#909090",
    "#808080",
    "#A0A0A0",
    "#B0B0B0",
)


def category_color(name: str) -> str:
    """
    Stable palette colour for a category name.

    Uses a content hash, so the same name maps to the same colour
    in every process.
    """
    digest = hashlib.sha256(name.encode("utf-8")).digest()
    return CATEGORY_PALETTE[int.from_bytes(digest[:8], "big") % len(CATEGORY_PALETTE)]


def round_one_decimal(value: Decimal) -> Decimal:
    """
    Round half-even to one decimal place, whatever the magnitude.

    quantize needs every digit of the result to fit the context precision,
    so the precision is widened for very large values.
    """
    with decimal.localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(ONE_DECIMAL, rounding=ROUND_HALF_EVEN)


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole * 100 to one decimal place; 0 when whole is not positive."""
    if whole <= 0:
        return ZERO
    return round_one_decimal(part / whole * HUNDRED)


def subtract_months(moment: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    total = moment.year * 12 + (moment.month - 1) - months
    year, month_index = divmod(total, 12)
    month = month_index + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _naive(moment: datetime) -> datetime:
    """Compare everything as local wall-clock time."""
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


class BaseConversion:
    """
    Rates from every ledger currency to one base currency,
    resolved up front for a single aggregation pass.

    With no base currency, amounts pass through unchanged.
    """

    def __init__(
        self,
        base_currency: Optional[str] = None,
        quotes: Optional[dict[str, RateQuote]] = None,
    ):
        self.base_currency = base_currency
        self._quotes = dict(quotes or {})

    def __call__(self, amount: Decimal, currency: Optional[str]) -> Decimal:
        if self.base_currency is None or currency is None or currency == self.base_currency:
            return amount
        return amount * self._quotes[currency].rate

    @property
    def quotes(self) -> dict[str, RateQuote]:
        return dict(self._quotes)

    @property
    def using_offline_rates(self) -> bool:
        return any(quote.is_fallback for quote in self._quotes.values())


class LedgerAggregator:
    """
    Turns a ledger snapshot into a DashboardSnapshot.

    Stateless between calls. The converter is only needed when a
    base currency is requested.
    """

    def __init__(
        self,
        converter: Optional[CurrencyConverter] = None,
        settings: Optional[DashboardSettings] = None,
    ):
        self._converter = converter
        self._settings = settings or get_settings().dashboard

    async def resolve_conversion(
        self,
        snapshot: LedgerSnapshot,
        base_currency: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> BaseConversion:
        """
        Look up the rate from each foreign currency in the ledger to the base.

        Lookups run concurrently; the converter never raises for a
        network failure, it answers with a fallback quote instead.
        """
        if base_currency is None:
            return BaseConversion()

        base = base_currency.strip().upper()
        foreign = sorted(code for code in snapshot.currencies() if code != base)
        if not foreign:
            return BaseConversion(base)

        if self._converter is None:
            raise ValueError(
                "A currency converter is required to aggregate in a base currency"
            )

        quotes = await asyncio.gather(
            *(self._converter.quote(code, base, correlation_id) for code in foreign)
        )
        return BaseConversion(base, dict(zip(foreign, quotes)))

    async def aggregate(
        self,
        snapshot: LedgerSnapshot,
        now: Optional[datetime] = None,
        base_currency: Optional[str] = None,
        window_days: Optional[int] = None,
        top_n: Optional[int] = None,
        recent_n: Optional[int] = None,
        trend_months: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
        conversion: Optional[BaseConversion] = None,
    ) -> DashboardSnapshot:
        """
        Compute the dashboard for `snapshot` as of `now`.

        Limits default to DashboardSettings. Amounts are converted only
        when `base_currency` is given. Pass a `conversion` already resolved
        for this snapshot to skip the rate lookups.
        """
        now = _naive(now or datetime.now())
        if base_currency is not None:
            base_currency = base_currency.strip().upper()
        if snapshot.is_empty:
            return DashboardSnapshot.empty(generated_at=now, base_currency=base_currency)

        if conversion is None:
            conversion = await self.resolve_conversion(
                snapshot, base_currency, correlation_id
            )
        return self.compute(
            snapshot,
            now=now,
            conversion=conversion,
            window_days=self._pick(window_days, self._settings.window_days),
            top_n=self._pick(top_n, self._settings.top_n),
            recent_n=self._pick(recent_n, self._settings.recent_n),
            trend_months=self._pick(trend_months, self._settings.trend_months),
        )

    @staticmethod
    def _pick(value: Optional[int], default: int) -> int:
        return max(0, default if value is None else value)

    def compute(
        self,
        snapshot: LedgerSnapshot,
        now: datetime,
        conversion: BaseConversion,
        window_days: int,
        top_n: int,
        recent_n: int,
        trend_months: int,
    ) -> DashboardSnapshot:
        """Synchronous part of a pass: every metric from snapshot + rates."""
        now = _naive(now)
        window_start = now - timedelta(days=window_days)
        recent = [t for t in snapshot.transactions if _naive(t.date) >= window_start]

        income = sum(
            (conversion(t.amount, t.currency) for t in recent if t.is_income),
            ZERO,
        )
        expense = sum(
            (conversion(t.amount, t.currency) for t in recent if not t.is_income),
            ZERO,
        )

        return DashboardSnapshot(
            generated_at=now,
            base_currency=conversion.base_currency,
            net_worth=self.net_worth(snapshot, conversion),
            monthly_income=income,
            monthly_expense=expense,
            savings_rate=percent_of(income - expense, income),
            recent_transactions=tuple(
                self.recent_transactions(snapshot.transactions, recent_n)
            ),
            top_expense_categories=tuple(
                self.top_expense_categories(recent, top_n, conversion)
            ),
            net_worth_trend=tuple(
                self.net_worth_trend(
                    snapshot.transactions,
                    subtract_months(now, trend_months),
                    conversion,
                )
            ),
            using_offline_rates=conversion.using_offline_rates,
        )

    @staticmethod
    def net_worth(snapshot: LedgerSnapshot, conversion: BaseConversion) -> Decimal:
        """Positive balances plus positive investment values."""
        accounts = sum(
            (max(ZERO, conversion(a.balance, a.currency)) for a in snapshot.accounts),
            ZERO,
        )
        investments = sum(
            (max(ZERO, conversion(i.current_value, i.currency)) for i in snapshot.investments),
            ZERO,
        )
        return accounts + investments

    @staticmethod
    def recent_transactions(
        transactions: Iterable[Transaction],
        limit: int,
    ) -> list[Transaction]:
        """Newest first; equal dates keep ledger order."""
        ordered = sorted(transactions, key=lambda t: _naive(t.date), reverse=True)
        return ordered[:limit]

    @staticmethod
    def top_expense_categories(
        transactions: Sequence[Transaction],
        limit: int,
        conversion: BaseConversion,
    ) -> list[CategoryExpense]:
        """Largest spending categories first; ties keep first-seen order."""
        totals: dict[str, Decimal] = {}
        for t in transactions:
            if t.is_income:
                continue
            label = t.category_label
            totals[label] = totals.get(label, ZERO) + conversion(t.amount, t.currency)

        ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
        return [
            CategoryExpense(name=name, amount=amount, color=category_color(name))
            for name, amount in ranked[:limit]
        ]

    @staticmethod
    def net_worth_trend(
        transactions: Iterable[Transaction],
        since: datetime,
        conversion: BaseConversion,
    ) -> list[TrendPoint]:
        """
        Cumulative signed flow per calendar month since `since`.

        Months without activity are skipped, not zero-filled.
        """
        since = _naive(since)
        flows: dict[tuple[int, int], Decimal] = {}
        for t in transactions:
            moment = _naive(t.date)
            if moment < since:
                continue
            key = (moment.year, moment.month)
            flows[key] = flows.get(key, ZERO) + conversion(t.signed_amount, t.currency)

        points = []
        cumulative = ZERO
        for (year, month) in sorted(flows):
            cumulative += flows[(year, month)]
            points.append(
                TrendPoint(
                    year=year,
                    month=month,
                    label=date(year, month, 1).strftime("%b"),
                    net_flow=flows[(year, month)],
                    cumulative=cumulative,
                )
            )
        return points
