"""
JSON File Storage Implementation

DESIGN DECISION: Each entity type lives in its own whole-document JSON file
(a flat array of objects) inside one data directory:

    transactions.json, accounts.json, investments.json,
    budgets.json, categories.json

TRADEOFFS:
- Every save rewrites the whole document (fine for a personal ledger)
- No transactions across files (callers save one collection at a time)
- A missing file simply means "nothing recorded yet"

Audit events go to a separate line-delimited JSON file so appends never
rewrite history.
"""

import json
from pathlib import Path
from typing import Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, TypeAdapter, ValidationError

from fintrack.config import get_settings
from fintrack.models.audit import AuditEvent
from fintrack.models.ledger import (
    DEFAULT_CATEGORIES,
    Account,
    Budget,
    Investment,
    Transaction,
)
from fintrack.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    StorageError,
)


ModelT = TypeVar("ModelT", bound=BaseModel)

TRANSACTIONS_FILE = "transactions.json"
ACCOUNTS_FILE = "accounts.json"
INVESTMENTS_FILE = "investments.json"
BUDGETS_FILE = "budgets.json"
CATEGORIES_FILE = "categories.json"


class JsonFileLedgerStorage(LedgerStorageInterface):
    """
    Ledger storage backed by JSON documents on the local disk.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        self._data_dir = Path(data_dir or get_settings().storage.data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, filename: str) -> Path:
        return self._data_dir / filename

    def _read_document(self, filename: str) -> Optional[list]:
        """Read a JSON array; None if the file does not exist."""
        path = self._path(filename)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}") from e
        if data is None:
            return []
        if not isinstance(data, list):
            raise StorageError(f"Expected a JSON array in {path}")
        return data

    def _write_document(self, filename: str, payload: list) -> bool:
        path = self._path(filename)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            # Write then rename so a crash never leaves half a document
            tmp_path = path.with_suffix(path.suffix + ".tmp")
            tmp_path.write_text(
                json.dumps(payload, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            tmp_path.replace(path)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        return True

    def _load_models(self, filename: str, model: type[ModelT]) -> list[ModelT]:
        data = self._read_document(filename)
        if not data:
            return []
        try:
            return TypeAdapter(list[model]).validate_python(data)
        except ValidationError as e:
            raise StorageError(f"Invalid records in {filename}: {e}") from e

    def _save_models(self, filename: str, items: list[BaseModel]) -> bool:
        payload = [item.model_dump(mode="json") for item in items]
        return self._write_document(filename, payload)

    async def list_transactions(self) -> list[Transaction]:
        return self._load_models(TRANSACTIONS_FILE, Transaction)

    async def save_transactions(self, transactions: list[Transaction]) -> bool:
        return self._save_models(TRANSACTIONS_FILE, transactions)

    async def list_accounts(self) -> list[Account]:
        return self._load_models(ACCOUNTS_FILE, Account)

    async def save_accounts(self, accounts: list[Account]) -> bool:
        return self._save_models(ACCOUNTS_FILE, accounts)

    async def list_investments(self) -> list[Investment]:
        return self._load_models(INVESTMENTS_FILE, Investment)

    async def save_investments(self, investments: list[Investment]) -> bool:
        return self._save_models(INVESTMENTS_FILE, investments)

    async def list_budgets(self) -> list[Budget]:
        return self._load_models(BUDGETS_FILE, Budget)

    async def save_budgets(self, budgets: list[Budget]) -> bool:
        return self._save_models(BUDGETS_FILE, budgets)

    async def list_categories(self) -> list[str]:
        data = self._read_document(CATEGORIES_FILE)
        if data is None:
            return list(DEFAULT_CATEGORIES)
        return [str(name) for name in data]

    async def save_categories(self, categories: list[str]) -> bool:
        return self._write_document(CATEGORIES_FILE, list(categories))


class InMemoryLedgerStorage(LedgerStorageInterface):
    """
    Ledger storage kept in process memory.

    Used by tests and for running without a data directory.
    """

    def __init__(
        self,
        transactions: Optional[list[Transaction]] = None,
        accounts: Optional[list[Account]] = None,
        investments: Optional[list[Investment]] = None,
        budgets: Optional[list[Budget]] = None,
        categories: Optional[list[str]] = None,
    ):
        self._transactions = list(transactions or [])
        self._accounts = list(accounts or [])
        self._investments = list(investments or [])
        self._budgets = list(budgets or [])
        self._categories = list(categories) if categories is not None else None

    async def list_transactions(self) -> list[Transaction]:
        return list(self._transactions)

    async def save_transactions(self, transactions: list[Transaction]) -> bool:
        self._transactions = list(transactions)
        return True

    async def list_accounts(self) -> list[Account]:
        return list(self._accounts)

    async def save_accounts(self, accounts: list[Account]) -> bool:
        self._accounts = list(accounts)
        return True

    async def list_investments(self) -> list[Investment]:
        return list(self._investments)

    async def save_investments(self, investments: list[Investment]) -> bool:
        self._investments = list(investments)
        return True

    async def list_budgets(self) -> list[Budget]:
        return list(self._budgets)

    async def save_budgets(self, budgets: list[Budget]) -> bool:
        self._budgets = list(budgets)
        return True

    async def list_categories(self) -> list[str]:
        if self._categories is None:
            return list(DEFAULT_CATEGORIES)
        return list(self._categories)

    async def save_categories(self, categories: list[str]) -> bool:
        self._categories = list(categories)
        return True


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Append-only audit log, one JSON object per line.
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path or get_settings().storage.audit_log_path)

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(event.to_json_line() + "\n")
        except OSError as e:
            raise StorageError(f"Failed to append audit event: {e}") from e
        return True

    def _read_events(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        events = []
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                for line in fh:
                    line = line.strip()
                    if not line:
                        continue
                    events.append(AuditEvent.model_validate_json(line))
        except (OSError, ValidationError) as e:
            raise StorageError(f"Failed to read audit log {self._path}: {e}") from e
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
        event_type: Optional[str] = None,
    ) -> list[AuditEvent]:
        events = self._read_events()
        if event_type:
            events = [e for e in events if e.event_type.value == event_type]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
