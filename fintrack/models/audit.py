"""
Audit Models for fintrack

Every decision the conversion engine makes about a rate, and every
dashboard refresh, is logged for audit purposes.
This provides:
1. A record of when numbers were computed with offline rates
2. Debugging information when the rate source misbehaves
3. Ability to reconstruct what a dashboard showed and why

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Exchange rates
    RATE_CACHE_HIT = "rate_cache_hit"
    RATE_FETCHED = "rate_fetched"
    RATE_FETCH_FAILED = "rate_fetch_failed"
    FALLBACK_RATE_USED = "fallback_rate_used"

    # Ledger and dashboard
    LEDGER_LOADED = "ledger_loaded"
    DASHBOARD_AGGREGATED = "dashboard_aggregated"
    CONTEXT_BUILT = "context_built"

    # System events
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'rate', 'ledger', 'dashboard')"
    )
    entity_key: Optional[str] = Field(
        default=None,
        description="Natural key of the entity (e.g., 'USD_RUB')"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one refresh)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_key": self.entity_key,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_json_line(self) -> str:
        """Serialize as one line of a line-delimited JSON log."""
        return self.model_dump_json()


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.rate_fetched("USD_RUB", "90.5")
        event = AuditEventBuilder.fallback_rate_used("USD_RUB", "90", "timeout")
    """

    @staticmethod
    def rate_cache_hit(
        pair: str,
        rate: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATE_CACHE_HIT,
            severity=AuditSeverity.DEBUG,
            entity_type="rate",
            entity_key=pair,
            correlation_id=correlation_id,
            description=f"Cached rate used for {pair}",
            details={"rate": rate},
        )

    @staticmethod
    def rate_fetched(
        pair: str,
        rate: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATE_FETCHED,
            entity_type="rate",
            entity_key=pair,
            correlation_id=correlation_id,
            description=f"Live rate fetched for {pair}: {rate}",
            details={"rate": rate},
        )

    @staticmethod
    def rate_fetch_failed(
        pair: str,
        error_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATE_FETCH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="rate",
            entity_key=pair,
            correlation_id=correlation_id,
            description=f"Rate fetch failed for {pair}",
            error_code=error_type,
            error_message=error_message,
        )

    @staticmethod
    def fallback_rate_used(
        pair: str,
        rate: str,
        reason: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FALLBACK_RATE_USED,
            severity=AuditSeverity.WARNING,
            entity_type="rate",
            entity_key=pair,
            correlation_id=correlation_id,
            description=f"Offline rate used for {pair}: {rate}",
            details={
                "rate": rate,
                "reason": reason,
            },
        )

    @staticmethod
    def ledger_loaded(
        transactions: int,
        accounts: int,
        investments: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=(
                f"Ledger loaded: {transactions} transactions, "
                f"{accounts} accounts, {investments} investments"
            ),
            details={
                "transactions": transactions,
                "accounts": accounts,
                "investments": investments,
            },
        )

    @staticmethod
    def dashboard_aggregated(
        net_worth: str,
        base_currency: Optional[str],
        using_offline_rates: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DASHBOARD_AGGREGATED,
            severity=AuditSeverity.WARNING if using_offline_rates else AuditSeverity.INFO,
            entity_type="dashboard",
            correlation_id=correlation_id,
            description=(
                "Dashboard computed with offline rates"
                if using_offline_rates
                else "Dashboard computed"
            ),
            details={
                "net_worth": net_worth,
                "base_currency": base_currency,
                "using_offline_rates": using_offline_rates,
            },
        )

    @staticmethod
    def context_built(
        sections: list[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONTEXT_BUILT,
            entity_type="context",
            correlation_id=correlation_id,
            description="Financial context built for analysis",
            details={"sections": sections},
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Storage operation failed: {operation}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
