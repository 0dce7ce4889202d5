"""
Tests for ledger aggregation.

All tests pin `now` so the window and trend arithmetic is deterministic.
"""

import httpx
import pytest
from datetime import datetime
from decimal import Decimal

from fintrack.aggregation import (
    CATEGORY_PALETTE,
    LedgerAggregator,
    category_color,
    subtract_months,
)
from fintrack.config import DashboardSettings
from fintrack.models.ledger import (
    UNKNOWN_CATEGORY,
    Account,
    Investment,
    LedgerSnapshot,
    Transaction,
)
from fintrack.services.rates import CurrencyConverter, RateCache, RateProvider


NOW = datetime(2024, 3, 15, 12, 0)


def tx(day: datetime, amount: str, income: bool = False, category=None, currency="RUB"):
    return Transaction(
        date=day,
        amount=Decimal(amount),
        is_income=income,
        category=category,
        currency=currency,
    )


def snapshot(transactions=(), accounts=(), investments=()) -> LedgerSnapshot:
    return LedgerSnapshot(
        transactions=tuple(transactions),
        accounts=tuple(accounts),
        investments=tuple(investments),
    )


def make_aggregator(converter=None) -> LedgerAggregator:
    return LedgerAggregator(converter=converter, settings=DashboardSettings())


def make_converter(handler) -> CurrencyConverter:
    provider = RateProvider(
        base_url="https://rates.test/latest",
        max_attempts=1,
        retry_wait=0,
        transport=httpx.MockTransport(handler),
    )
    return CurrencyConverter(RateCache(), provider)


class TestHelpers:
    """Tests for module-level helpers."""

    def test_subtract_months_clamps_day(self):
        assert subtract_months(datetime(2024, 3, 31), 1) == datetime(2024, 2, 29)

    def test_subtract_months_crosses_year(self):
        assert subtract_months(datetime(2024, 1, 15, 9, 30), 3) == datetime(2023, 10, 15, 9, 30)

    def test_category_color_is_stable(self):
        color = category_color("Groceries")
        assert color in CATEGORY_PALETTE
        assert category_color("Groceries") == color


class TestEmptyLedger:
    """An empty ledger produces zeros, not placeholders."""

    @pytest.mark.asyncio
    async def test_empty_snapshot(self):
        dashboard = await make_aggregator().aggregate(snapshot(), now=NOW)
        assert dashboard.net_worth == Decimal("0")
        assert dashboard.monthly_income == Decimal("0")
        assert dashboard.monthly_expense == Decimal("0")
        assert dashboard.savings_rate == Decimal("0")
        assert dashboard.recent_transactions == ()
        assert dashboard.top_expense_categories == ()
        assert dashboard.net_worth_trend == ()

    @pytest.mark.asyncio
    async def test_empty_snapshot_needs_no_converter(self):
        dashboard = await make_aggregator().aggregate(
            snapshot(), now=NOW, base_currency="rub"
        )
        assert dashboard.base_currency == "RUB"


class TestMonthlyMetrics:
    """Tests for income, expense and savings rate."""

    @pytest.mark.asyncio
    async def test_income_expense_and_savings_rate(self):
        ledger = snapshot([
            tx(datetime(2024, 3, 10), "100", income=True),
            tx(datetime(2024, 3, 11), "40", category="Food"),
        ])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        assert dashboard.monthly_income == Decimal("100")
        assert dashboard.monthly_expense == Decimal("40")
        assert dashboard.savings_rate == Decimal("60.0")

    @pytest.mark.asyncio
    async def test_savings_rate_rounds_to_one_decimal(self):
        ledger = snapshot([
            tx(datetime(2024, 3, 10), "3", income=True),
            tx(datetime(2024, 3, 11), "2"),
        ])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        assert dashboard.savings_rate == Decimal("33.3")

    @pytest.mark.asyncio
    async def test_savings_rate_with_extreme_amounts(self):
        ledger = snapshot([
            tx(datetime(2024, 3, 10), "0.01", income=True),
            tx(datetime(2024, 3, 11), "1E30"),
        ])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        assert dashboard.monthly_expense == Decimal("1E30")
        assert dashboard.savings_rate < 0
        assert dashboard.savings_rate.as_tuple().exponent == -1

    @pytest.mark.asyncio
    async def test_zero_income_gives_zero_rate(self):
        ledger = snapshot([tx(datetime(2024, 3, 10), "25")])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        assert dashboard.savings_rate == Decimal("0")

    @pytest.mark.asyncio
    async def test_window_excludes_old_transactions(self):
        ledger = snapshot([
            tx(datetime(2024, 1, 5), "500", income=True),
            tx(datetime(2024, 3, 1), "50", income=True),
        ])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        assert dashboard.monthly_income == Decimal("50")

    @pytest.mark.asyncio
    async def test_custom_window(self):
        ledger = snapshot([
            tx(datetime(2024, 3, 1), "50", income=True),
            tx(datetime(2024, 3, 14), "20", income=True),
        ])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW, window_days=7)
        assert dashboard.monthly_income == Decimal("20")


class TestNetWorth:
    """Net worth clamps negative balances and values to zero."""

    @pytest.mark.asyncio
    async def test_negative_values_are_clamped(self):
        ledger = snapshot(
            accounts=[
                Account(name="Checking", balance=Decimal("1000")),
                Account(name="Credit card", balance=Decimal("-500")),
            ],
            investments=[
                Investment(name="Fund", invested=Decimal("150"), current_value=Decimal("200")),
                Investment(name="Startup", invested=Decimal("50"), current_value=Decimal("-10")),
            ],
        )
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        assert dashboard.net_worth == Decimal("1200")


class TestTopExpenseCategories:
    """Tests for category ranking."""

    @pytest.mark.asyncio
    async def test_sorted_descending_with_stable_ties(self):
        ledger = snapshot([
            tx(datetime(2024, 3, 1), "50", category="A"),
            tx(datetime(2024, 3, 2), "50", category="B"),
            tx(datetime(2024, 3, 3), "70", category="C"),
            tx(datetime(2024, 3, 4), "999", income=True, category="Salary"),
        ])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        names = [c.name for c in dashboard.top_expense_categories]
        assert names == ["C", "A", "B"]

    @pytest.mark.asyncio
    async def test_bounded_by_top_n(self):
        ledger = snapshot([
            tx(datetime(2024, 3, 1 + i), str(10 + i), category=f"Cat{i}")
            for i in range(7)
        ])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        assert len(dashboard.top_expense_categories) == 5
        assert dashboard.top_expense_categories[0].name == "Cat6"

    @pytest.mark.asyncio
    async def test_missing_category_is_unknown(self):
        ledger = snapshot([
            tx(datetime(2024, 3, 1), "10"),
            tx(datetime(2024, 3, 2), "15", category=None),
        ])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        [bucket] = dashboard.top_expense_categories
        assert bucket.name == UNKNOWN_CATEGORY
        assert bucket.amount == Decimal("25")
        assert bucket.color == category_color(UNKNOWN_CATEGORY)


class TestRecentTransactions:
    """Tests for the recent transactions list."""

    @pytest.mark.asyncio
    async def test_bounded_and_newest_first(self):
        ledger = snapshot([
            tx(datetime(2023, 12, 1 + i), "1") for i in range(12)
        ])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        dates = [t.date for t in dashboard.recent_transactions]
        assert len(dates) == 10
        assert dates == sorted(dates, reverse=True)
        assert dates[0] == datetime(2023, 12, 12)

    @pytest.mark.asyncio
    async def test_not_limited_to_window(self):
        ledger = snapshot([tx(datetime(2020, 1, 1), "1")])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        assert len(dashboard.recent_transactions) == 1


class TestNetWorthTrend:
    """Tests for the cumulative monthly trend."""

    @pytest.mark.asyncio
    async def test_cumulative_by_month(self):
        ledger = snapshot([
            tx(datetime(2024, 3, 10), "50", income=True),
            tx(datetime(2024, 1, 10), "100", income=True),
            tx(datetime(2024, 2, 10), "30"),
            tx(datetime(2023, 1, 10), "1000", income=True),
        ])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        assert dashboard.trend_values == [Decimal("100"), Decimal("70"), Decimal("120")]
        assert [(p.year, p.month) for p in dashboard.net_worth_trend] == [
            (2024, 1), (2024, 2), (2024, 3),
        ]
        assert dashboard.net_worth_trend[0].label == "Jan"

    @pytest.mark.asyncio
    async def test_inactive_months_are_skipped(self):
        ledger = snapshot([
            tx(datetime(2023, 11, 5), "10", income=True),
            tx(datetime(2024, 3, 5), "5", income=True),
        ])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        assert len(dashboard.net_worth_trend) == 2
        assert dashboard.trend_values == [Decimal("10"), Decimal("15")]

    @pytest.mark.asyncio
    async def test_window_boundary(self):
        ledger = snapshot([
            tx(datetime(2024, 1, 10), "10", income=True),
            tx(datetime(2024, 1, 20), "20", income=True),
        ])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW, trend_months=2)
        assert dashboard.trend_values == [Decimal("20")]

    @pytest.mark.asyncio
    async def test_empty_when_no_activity_in_window(self):
        ledger = snapshot([tx(datetime(2022, 1, 1), "10", income=True)])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        assert dashboard.net_worth_trend == ()


class TestBaseCurrency:
    """Tests for multi-currency ledgers."""

    @pytest.mark.asyncio
    async def test_amounts_are_converted(self):
        requested = []

        def handler(request):
            requested.append(request.url.path)
            return httpx.Response(200, json={"rates": {"RUB": 90}})

        ledger = snapshot(
            transactions=[
                tx(datetime(2024, 3, 10), "2", income=True, currency="USD"),
                tx(datetime(2024, 3, 11), "30"),
            ],
            accounts=[Account(name="Dollars", balance=Decimal("10"), currency="USD")],
        )
        aggregator = make_aggregator(make_converter(handler))
        dashboard = await aggregator.aggregate(ledger, now=NOW, base_currency="RUB")

        assert dashboard.monthly_income == Decimal("180")
        assert dashboard.monthly_expense == Decimal("30")
        assert dashboard.net_worth == Decimal("900")
        assert dashboard.using_offline_rates is False
        assert requested == ["/latest/USD"]

    @pytest.mark.asyncio
    async def test_offline_rates_are_flagged(self):
        ledger = snapshot([tx(datetime(2024, 3, 10), "1", income=True, currency="EUR")])
        aggregator = make_aggregator(make_converter(lambda request: httpx.Response(503)))
        dashboard = await aggregator.aggregate(ledger, now=NOW, base_currency="RUB")

        assert dashboard.monthly_income == Decimal("98")
        assert dashboard.using_offline_rates is True

    @pytest.mark.asyncio
    async def test_converter_required_for_foreign_currency(self):
        ledger = snapshot([tx(datetime(2024, 3, 10), "1", currency="USD")])
        with pytest.raises(ValueError, match="converter"):
            await make_aggregator().aggregate(ledger, now=NOW, base_currency="RUB")

    @pytest.mark.asyncio
    async def test_no_base_currency_means_no_conversion(self):
        ledger = snapshot([
            tx(datetime(2024, 3, 10), "1", income=True, currency="USD"),
            tx(datetime(2024, 3, 11), "2", income=True),
        ])
        dashboard = await make_aggregator().aggregate(ledger, now=NOW)
        assert dashboard.monthly_income == Decimal("3")
        assert dashboard.base_currency is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
