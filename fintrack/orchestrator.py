"""
Main Orchestrator for fintrack

This module ties together all the components and defines the
end-to-end flows for:
1. Dashboard refresh (load ledger → resolve rates → aggregate)
2. Analysis context (dashboard + project/wallet summaries → JSON dict)

DESIGN DECISION: Components are built ONCE by `create_app_components`
and handed to the flows explicitly. There is no process-wide service
container; whoever owns the returned objects owns the rate cache.

Every step is audited under one correlation ID per refresh.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional
from uuid import UUID

import httpx

from fintrack.aggregation import (
    BaseConversion,
    LedgerAggregator,
    build_financial_context,
    summarize_projects,
    summarize_wallet,
)
from fintrack.audit import AuditLogger, configure_logging, create_correlation_id
from fintrack.config import DashboardSettings, get_settings
from fintrack.models.dashboard import DashboardSnapshot
from fintrack.models.ledger import LedgerSnapshot
from fintrack.services.rates import (
    CurrencyConverter,
    FallbackTable,
    RateCache,
    RateProvider,
)
from fintrack.services.storage import (
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
    LedgerStorageInterface,
    StorageError,
)


class DashboardFlow:
    """
    Orchestrates a dashboard refresh.

    Flow:
    1. Load → one read-only LedgerSnapshot from storage
    2. Resolve → rates for every foreign currency (cache, live, fallback)
    3. Aggregate → DashboardSnapshot in the configured base currency

    Storage failures propagate; rate failures never do.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        aggregator: LedgerAggregator,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[DashboardSettings] = None,
    ):
        self._storage = storage
        self._aggregator = aggregator
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().dashboard
        self._using_offline_rates = False

    @property
    def using_offline_rates(self) -> bool:
        """True if the last dashboard this flow produced used fallback rates."""
        return self._using_offline_rates

    async def load_snapshot(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerSnapshot:
        try:
            snapshot = await self._storage.load_ledger_snapshot()
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="load_ledger_snapshot",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_ledger_loaded(
                transactions=len(snapshot.transactions),
                accounts=len(snapshot.accounts),
                investments=len(snapshot.investments),
                correlation_id=correlation_id,
            )
        return snapshot

    async def refresh(
        self,
        now: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> DashboardSnapshot:
        """
        Produce a fresh DashboardSnapshot.

        Raises:
            StorageError: If the ledger cannot be read
        """
        correlation_id = correlation_id or create_correlation_id()
        snapshot = await self.load_snapshot(correlation_id)
        return await self._aggregate(snapshot, now, correlation_id)

    async def _aggregate(
        self,
        snapshot: LedgerSnapshot,
        now: Optional[datetime],
        correlation_id: UUID,
        conversion: Optional[BaseConversion] = None,
    ) -> DashboardSnapshot:
        dashboard = await self._aggregator.aggregate(
            snapshot,
            now=now,
            base_currency=self._settings.base_currency,
            correlation_id=correlation_id,
            conversion=conversion,
        )
        self._using_offline_rates = dashboard.using_offline_rates

        if self._audit_logger:
            await self._audit_logger.log_dashboard_aggregated(
                net_worth=str(dashboard.net_worth),
                base_currency=dashboard.base_currency,
                using_offline_rates=dashboard.using_offline_rates,
                correlation_id=correlation_id,
            )
        return dashboard

    async def analysis_context(
        self,
        now: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> dict:
        """
        Build the JSON-serialisable context for the AI-analysis service.

        Reuses a single ledger read and rate resolution for the dashboard
        and the project/wallet summaries, so all numbers agree.
        """
        correlation_id = correlation_id or create_correlation_id()
        snapshot = await self.load_snapshot(correlation_id)
        conversion = await self._aggregator.resolve_conversion(
            snapshot,
            self._settings.base_currency,
            correlation_id,
        )
        dashboard = await self._aggregate(snapshot, now, correlation_id, conversion)

        context = build_financial_context(
            dashboard,
            projects=summarize_projects(snapshot.transactions, conversion),
            wallet=summarize_wallet(snapshot.accounts, snapshot.investments, conversion),
            accounts=snapshot.accounts,
            investments=snapshot.investments,
        )

        if self._audit_logger:
            await self._audit_logger.log_context_built(
                sections=list(context.keys()),
                correlation_id=correlation_id,
            )
        return context


def create_app_components(
    use_file_storage: bool = True,
    data_dir: Optional[Path] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> tuple[DashboardFlow, CurrencyConverter, LedgerStorageInterface]:
    """
    Factory function to create all application components.

    One httpx.AsyncClient is opened here and shared by every rate fetch.
    It lives as long as the returned components do.

    Args:
        use_file_storage: Whether to read the ledger from JSON documents.
                    Set to False for an empty in-memory ledger.
        data_dir: Overrides the configured storage directory.
        transport: httpx transport for the rate source (tests use a mock).

    Returns:
        (dashboard_flow, converter, ledger_storage)
    """
    settings = get_settings()
    rates_settings = settings.rates
    configure_logging(settings.app.log_level)

    if use_file_storage:
        storage = JsonFileLedgerStorage(data_dir)
        audit_path = (
            Path(data_dir) / settings.storage.audit_log_name
            if data_dir is not None
            else settings.storage.audit_log_path
        )
        audit_logger = AuditLogger(JsonLinesAuditStorage(audit_path))
    else:
        storage = InMemoryLedgerStorage()
        audit_logger = AuditLogger()  # Local-only logging

    cache = RateCache(ttl=timedelta(seconds=rates_settings.cache_ttl_seconds))
    http_client = httpx.AsyncClient(
        timeout=rates_settings.timeout_seconds,
        transport=transport,
    )
    provider = RateProvider(client=http_client)
    converter = CurrencyConverter(
        cache=cache,
        provider=provider,
        fallback=FallbackTable(),
        audit_logger=audit_logger,
    )
    aggregator = LedgerAggregator(converter=converter, settings=settings.dashboard)

    dashboard_flow = DashboardFlow(
        storage=storage,
        aggregator=aggregator,
        audit_logger=audit_logger,
        settings=settings.dashboard,
    )

    return dashboard_flow, converter, storage
