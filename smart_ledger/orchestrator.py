"""
Main Orchestrator for Smart Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Adding a transaction (input -> categorize -> append -> persist -> insight refresh)
2. Deleting one transaction or clearing the ledger
3. Reading a dashboard snapshot (stats, charts, advisor text)

DESIGN DECISION: The ledger store notifies the insight scheduler on
every change, so no flow has to remember to refresh insights.

All flows must run on one asyncio event loop.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from smart_ledger.agents import CategorizerAgent, InsightAgent, RemoteCallError
from smart_ledger.audit import AuditLogger, configure_logging
from smart_ledger.config import GeminiSettings, get_settings
from smart_ledger.insights import InsightScheduler
from smart_ledger.ledger import LedgerStore, category_breakdown, daily_series, stats
from smart_ledger.models.transaction import (
    CategoryBreakdown,
    DailyPoint,
    DerivedStats,
    InsightState,
    Transaction,
    TransactionDraft,
    TransactionType,
    fallback_category,
    utc_now,
)
from smart_ledger.services.storage import (
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
)


logger = structlog.get_logger(__name__)


class DashboardSnapshot(BaseModel):
    """Everything the main screen shows, computed from one ledger snapshot."""
    model_config = ConfigDict(frozen=True)

    transactions: tuple[Transaction, ...]
    stats: DerivedStats
    category_breakdown: CategoryBreakdown
    daily_series: list[DailyPoint]
    insight: InsightState


class LedgerFlow:
    """
    Orchestrates the user-facing ledger operations.

    Flow for a new transaction:
    1. Validate input (TransactionDraft)
    2. Resolve the category - user override, else the categorizer
    3. Prepend to the ledger, which persists and notifies the scheduler
    """

    def __init__(
        self,
        store: LedgerStore,
        categorizer: CategorizerAgent,
        scheduler: Optional[InsightScheduler] = None,
        daily_window: int = 10,
    ):
        self._store = store
        self._categorizer = categorizer
        self._scheduler = scheduler
        self._daily_window = daily_window
        if scheduler is not None:
            store.subscribe(scheduler.notify_changed)

    @property
    def store(self) -> LedgerStore:
        return self._store

    @property
    def scheduler(self) -> Optional[InsightScheduler]:
        return self._scheduler

    def start(self) -> tuple[Transaction, ...]:
        """Load the stored ledger. Must be called on the running event loop."""
        return self._store.load()

    async def shutdown(self) -> None:
        if self._scheduler is not None:
            await self._scheduler.shutdown()

    async def add_transaction(
        self,
        description: str,
        amount: Union[Decimal, float, str],
        transaction_type: TransactionType,
        category: Optional[str] = None,
        date: Optional[datetime] = None,
    ) -> Transaction:
        """
        Record a transaction.

        Raises:
            ValidationError: If description is empty or amount invalid
        """
        transaction_type = TransactionType(transaction_type)
        override = category.strip() if category else ""

        # Validate before spending a model call
        draft = TransactionDraft(
            amount=amount,
            description=description,
            type=transaction_type,
            category=override or fallback_category(transaction_type),
            date=date or utc_now(),
        )

        if not override:
            resolved = await self._categorizer.categorize(draft.description, draft.type)
            draft = TransactionDraft(**{**draft.model_dump(), "category": resolved})

        return self._store.add(draft)

    def delete_transaction(self, transaction_id: Union[UUID, str]) -> bool:
        """Remove one transaction. False if it was not in the ledger."""
        return self._store.remove(transaction_id)

    def clear_all(self) -> None:
        self._store.clear()

    def dashboard(self, window_size: Optional[int] = None) -> DashboardSnapshot:
        snapshot = self._store.transactions
        insight = self._scheduler.insight if self._scheduler else InsightState()
        return DashboardSnapshot(
            transactions=snapshot,
            stats=stats(snapshot),
            category_breakdown=category_breakdown(snapshot),
            daily_series=daily_series(snapshot, window_size or self._daily_window),
            insight=insight,
        )


class _UnconfiguredModel:
    """Stands in for Gemini when no API key is set; every call fails."""

    def __init__(self, reason: str):
        self._reason = reason

    async def generate_content_async(self, prompt: str):
        raise RemoteCallError(f"Gemini not configured: {self._reason}")


def create_app_components(
    storage: Optional[KeyValueStoreInterface] = None,
    categorizer: Optional[CategorizerAgent] = None,
    insight_agent: Optional[InsightAgent] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> LedgerFlow:
    """
    Factory function to create all application components.

    Args:
        storage: Key-value store. Defaults to the JSON file store.
        categorizer / insight_agent: Pre-built agents (tests inject fakes).
            Without a Gemini API key the default agents still work and
            always return their fallbacks.

    Returns:
        A LedgerFlow wired to its store and insight scheduler.
        Call `start()` on the event loop to load the ledger.
    """
    settings = get_settings()
    app_settings = settings.app
    storage_settings = settings.storage
    insight_settings = settings.insights

    configure_logging(app_settings.log_level)
    audit_logger = audit_logger or AuditLogger()

    if categorizer is None or insight_agent is None:
        try:
            gemini_settings = settings.gemini
            model_kwargs = {}
        except ValidationError as e:
            # No API key - continue with fallback-only agents
            logger.warning("gemini_not_configured", error=str(e))
            gemini_settings = GeminiSettings(api_key="unset")
            model_kwargs = {"model": _UnconfiguredModel("GEMINI_API_KEY is missing")}

        if categorizer is None:
            categorizer = CategorizerAgent(
                settings=gemini_settings,
                audit_logger=audit_logger,
                **model_kwargs,
            )
        if insight_agent is None:
            insight_agent = InsightAgent(
                settings=gemini_settings,
                audit_logger=audit_logger,
                history_window=insight_settings.history_window,
                **model_kwargs,
            )

    storage = storage or JsonFileKeyValueStore(
        data_dir=storage_settings.data_dir,
        write_attempts=storage_settings.write_attempts,
    )
    store = LedgerStore(
        storage=storage,
        key=storage_settings.transactions_key,
        audit_logger=audit_logger,
    )
    scheduler = InsightScheduler(
        insight_agent=insight_agent,
        debounce_seconds=insight_settings.debounce_seconds,
        history_window=insight_settings.history_window,
        audit_logger=audit_logger,
    )

    return LedgerFlow(
        store=store,
        categorizer=categorizer,
        scheduler=scheduler,
        daily_window=app_settings.daily_window,
    )
