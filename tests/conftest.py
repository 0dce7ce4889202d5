"""Shared fixtures."""

from typing import Optional
from uuid import UUID

import pytest

from fintrack.models.audit import AuditEvent
from fintrack.services.storage import AuditStorageInterface, StorageError


class RecordingAuditStorage(AuditStorageInterface):
    """Keeps events in a list; optionally fails every append."""

    def __init__(self, fail: bool = False):
        self.events: list[AuditEvent] = []
        self.fail = fail

    async def append_event(self, event: AuditEvent) -> bool:
        if self.fail:
            raise StorageError("audit log unavailable")
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        return [e for e in self.events if e.correlation_id == correlation_id]

    async def get_recent_events(
        self,
        limit: int = 100,
        event_type: Optional[str] = None,
    ) -> list[AuditEvent]:
        return self.events[-limit:]


@pytest.fixture
def audit_storage() -> RecordingAuditStorage:
    return RecordingAuditStorage()


@pytest.fixture
def failing_audit_storage() -> RecordingAuditStorage:
    return RecordingAuditStorage(fail=True)
