"""
Tests for JSON document storage and the audit log.
"""

import json

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

from fintrack.models.audit import AuditEventBuilder, AuditEventType
from fintrack.models.ledger import (
    DEFAULT_CATEGORIES,
    Account,
    Budget,
    Investment,
    Transaction,
)
from fintrack.services.storage import (
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
    StorageError,
)


class TestJsonFileLedgerStorage:
    """Tests for whole-document JSON storage."""

    @pytest.mark.asyncio
    async def test_missing_files_mean_empty_ledger(self, tmp_path):
        storage = JsonFileLedgerStorage(tmp_path)
        snapshot = await storage.load_ledger_snapshot()
        assert snapshot.is_empty
        assert await storage.list_budgets() == []

    @pytest.mark.asyncio
    async def test_missing_categories_give_defaults(self, tmp_path):
        storage = JsonFileLedgerStorage(tmp_path)
        assert await storage.list_categories() == list(DEFAULT_CATEGORIES)

    @pytest.mark.asyncio
    async def test_transactions_round_trip(self, tmp_path):
        storage = JsonFileLedgerStorage(tmp_path)
        original = Transaction(
            date=datetime(2024, 3, 1, 9, 30),
            description="Coffee",
            category="Food",
            amount=Decimal("3.50"),
            currency="EUR",
        )
        assert await storage.save_transactions([original])

        [loaded] = await storage.list_transactions()
        assert loaded.id == original.id
        assert loaded.amount == Decimal("3.50")
        assert loaded.date == original.date
        assert loaded.currency == "EUR"

    @pytest.mark.asyncio
    async def test_document_is_flat_array(self, tmp_path):
        storage = JsonFileLedgerStorage(tmp_path)
        await storage.save_accounts([Account(name="Cash", balance=Decimal("10"))])
        data = json.loads((tmp_path / "accounts.json").read_text(encoding="utf-8"))
        assert isinstance(data, list)
        assert data[0]["name"] == "Cash"

    @pytest.mark.asyncio
    async def test_snapshot_bundles_collections(self, tmp_path):
        storage = JsonFileLedgerStorage(tmp_path)
        await storage.save_accounts([Account(name="Cash", balance=Decimal("10"))])
        await storage.save_investments([
            Investment(name="Fund", invested=Decimal("5"), current_value=Decimal("6"))
        ])
        await storage.save_budgets([Budget(category="Food", amount=Decimal("100"))])

        snapshot = await storage.load_ledger_snapshot()
        assert len(snapshot.accounts) == 1
        assert len(snapshot.investments) == 1
        assert snapshot.transactions == ()
        assert len(await storage.list_budgets()) == 1

    @pytest.mark.asyncio
    async def test_hand_written_document(self, tmp_path):
        (tmp_path / "transactions.json").write_text(
            json.dumps([
                {"date": "2024-03-01T00:00:00", "amount": "12", "currency": "usd", "is_income": True},
            ]),
            encoding="utf-8",
        )
        [loaded] = await JsonFileLedgerStorage(tmp_path).list_transactions()
        assert loaded.currency == "USD"
        assert loaded.category is None

    @pytest.mark.asyncio
    async def test_malformed_json_raises(self, tmp_path):
        (tmp_path / "transactions.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            await JsonFileLedgerStorage(tmp_path).list_transactions()

    @pytest.mark.asyncio
    async def test_non_array_raises(self, tmp_path):
        (tmp_path / "accounts.json").write_text('{"name": "Cash"}', encoding="utf-8")
        with pytest.raises(StorageError):
            await JsonFileLedgerStorage(tmp_path).list_accounts()

    @pytest.mark.asyncio
    async def test_invalid_record_raises(self, tmp_path):
        (tmp_path / "transactions.json").write_text(
            json.dumps([{"date": "2024-03-01T00:00:00", "amount": "-5"}]),
            encoding="utf-8",
        )
        with pytest.raises(StorageError):
            await JsonFileLedgerStorage(tmp_path).list_transactions()

    @pytest.mark.asyncio
    async def test_saved_categories_replace_defaults(self, tmp_path):
        storage = JsonFileLedgerStorage(tmp_path)
        await storage.save_categories(["Rent", "Travel"])
        assert await storage.list_categories() == ["Rent", "Travel"]


class TestInMemoryLedgerStorage:
    """Tests for in-process storage."""

    @pytest.mark.asyncio
    async def test_snapshot(self):
        storage = InMemoryLedgerStorage(
            transactions=[Transaction(date=datetime(2024, 3, 1), amount=Decimal("1"))]
        )
        snapshot = await storage.load_ledger_snapshot()
        assert len(snapshot.transactions) == 1
        assert await storage.list_categories() == list(DEFAULT_CATEGORIES)


class TestJsonLinesAuditStorage:
    """Tests for the append-only audit log."""

    @pytest.mark.asyncio
    async def test_append_and_read_back(self, tmp_path):
        storage = JsonLinesAuditStorage(tmp_path / "audit" / "audit.jsonl")
        first = AuditEventBuilder.rate_fetched("USD_RUB", "90")
        second = AuditEventBuilder.fallback_rate_used("EUR_RUB", "98", "timeout").model_copy(
            update={"timestamp": first.timestamp + timedelta(seconds=1)}
        )

        assert await storage.append_event(first)
        assert await storage.append_event(second)

        lines = (tmp_path / "audit" / "audit.jsonl").read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2

        recent = await storage.get_recent_events(limit=1)
        assert [e.event_id for e in recent] == [second.event_id]

        fallbacks = await storage.get_recent_events(event_type="fallback_rate_used")
        assert [e.event_type for e in fallbacks] == [AuditEventType.FALLBACK_RATE_USED]

    @pytest.mark.asyncio
    async def test_events_by_correlation_id(self, tmp_path):
        storage = JsonLinesAuditStorage(tmp_path / "audit.jsonl")
        correlation_id = uuid4()
        await storage.append_event(
            AuditEventBuilder.rate_fetched("USD_RUB", "90", correlation_id=correlation_id)
        )
        await storage.append_event(AuditEventBuilder.rate_fetched("EUR_RUB", "98"))

        events = await storage.get_events_by_correlation_id(correlation_id)
        assert [e.entity_key for e in events] == ["USD_RUB"]

    @pytest.mark.asyncio
    async def test_missing_log_is_empty(self, tmp_path):
        storage = JsonLinesAuditStorage(tmp_path / "nothing.jsonl")
        assert await storage.get_recent_events() == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
