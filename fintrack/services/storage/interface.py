"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the aggregation core ignorant of where the ledger lives
2. Use in-memory storage for testing
3. Swap the JSON documents for a real database later

The core only ever uses the read path (`load_ledger_snapshot`).
Writes exist for the rest of the application.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from fintrack.models.audit import AuditEvent
from fintrack.models.ledger import (
    Account,
    Budget,
    Investment,
    LedgerSnapshot,
    Transaction,
)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation (JSON files, SQLite, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def list_transactions(self) -> list[Transaction]:
        """Return every recorded transaction."""
        pass

    @abstractmethod
    async def save_transactions(self, transactions: list[Transaction]) -> bool:
        """
        Replace the stored transaction collection.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def list_accounts(self) -> list[Account]:
        pass

    @abstractmethod
    async def save_accounts(self, accounts: list[Account]) -> bool:
        pass

    @abstractmethod
    async def list_investments(self) -> list[Investment]:
        pass

    @abstractmethod
    async def save_investments(self, investments: list[Investment]) -> bool:
        pass

    @abstractmethod
    async def list_budgets(self) -> list[Budget]:
        pass

    @abstractmethod
    async def save_budgets(self, budgets: list[Budget]) -> bool:
        pass

    @abstractmethod
    async def list_categories(self) -> list[str]:
        """
        Return the category names offered for new transactions.

        Implementations return a default list when none were saved yet.
        """
        pass

    @abstractmethod
    async def save_categories(self, categories: list[str]) -> bool:
        pass

    async def load_ledger_snapshot(self) -> LedgerSnapshot:
        """
        Load transactions, accounts and investments as one read-only bundle.

        Raises:
            StorageError: If any collection cannot be read
        """
        transactions = await self.list_transactions()
        accounts = await self.list_accounts()
        investments = await self.list_investments()
        return LedgerSnapshot(
            transactions=tuple(transactions),
            accounts=tuple(accounts),
            investments=tuple(investments),
        )


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one dashboard refresh).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
        event_type: Optional[str] = None,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return
            event_type: Only return events of this type

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass

