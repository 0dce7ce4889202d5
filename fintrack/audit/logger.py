"""
Audit Logger

DESIGN DECISION: Every rate decision and every dashboard refresh is logged.
This provides:
1. Traceability of which numbers used offline rates
2. Debugging capability when the rate source misbehaves
3. A history the user can inspect

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from fintrack.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from fintrack.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route stdlib logging (and therefore structlog) at the given level."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("fintrack.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Debug events stay local; the store only keeps what a user cares about
        if self._storage and event.severity != AuditSeverity.DEBUG:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_rate_cache_hit(
        self,
        pair: str,
        rate: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.rate_cache_hit(
            pair=pair,
            rate=rate,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_rate_fetched(
        self,
        pair: str,
        rate: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful live fetch."""
        event = AuditEventBuilder.rate_fetched(
            pair=pair,
            rate=rate,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_rate_fetch_failed(
        self,
        pair: str,
        error_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed live fetch."""
        event = AuditEventBuilder.rate_fetch_failed(
            pair=pair,
            error_type=error_type,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_fallback_rate_used(
        self,
        pair: str,
        rate: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log that an offline rate stood in for a live one."""
        event = AuditEventBuilder.fallback_rate_used(
            pair=pair,
            rate=rate,
            reason=reason,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_ledger_loaded(
        self,
        transactions: int,
        accounts: int,
        investments: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.ledger_loaded(
            transactions=transactions,
            accounts=accounts,
            investments=investments,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_dashboard_aggregated(
        self,
        net_worth: str,
        base_currency: Optional[str],
        using_offline_rates: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.dashboard_aggregated(
            net_worth=net_worth,
            base_currency=base_currency,
            using_offline_rates=using_offline_rates,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_context_built(
        self,
        sections: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.context_built(
            sections=sections,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a storage failure."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a dashboard refresh).
    Pass it through all subsequent operations.
    """
    return uuid4()
