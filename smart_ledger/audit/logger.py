"""
Audit Logger

DESIGN DECISION: Every ledger mutation and every degraded path is logged.
This provides:
1. Traceability of what happened to the ledger
2. Debugging capability when storage or the model fail
3. A recent-activity list for the UI

The audit logger:
- Is synchronous, because ledger mutations are synchronous
- Never raises into the caller
- Keeps a bounded in-memory history of recent events
"""

import logging
from collections import deque
from typing import Optional
from uuid import UUID

import structlog

from smart_ledger.models.audit import LedgerEvent, LedgerEventBuilder


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
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An in-memory history (for the activity panel and tests)
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("smart_ledger.audit")
        self._history: deque[LedgerEvent] = deque(maxlen=history_size)

    def log(self, event: LedgerEvent) -> None:
        """Log an audit event."""
        self._history.append(event)
        log_dict = event.to_log_dict()

        try:
            if event.severity.value == "error":
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # A broken log handler must not break a ledger mutation
            logging.getLogger(__name__).error("audit_log_failed: %s", e)

    def recent_events(self, limit: int = 50) -> list[LedgerEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._history))[:limit]

    def log_transaction_added(
        self,
        transaction_id: UUID,
        category: str,
        amount: str,
        transaction_type: str,
    ) -> None:
        self.log(LedgerEventBuilder.transaction_added(
            transaction_id=transaction_id,
            category=category,
            amount=amount,
            transaction_type=transaction_type,
        ))

    def log_transaction_removed(self, transaction_id: UUID) -> None:
        self.log(LedgerEventBuilder.transaction_removed(transaction_id))

    def log_transaction_not_found(self, transaction_id: UUID) -> None:
        self.log(LedgerEventBuilder.transaction_not_found(transaction_id))

    def log_ledger_cleared(self, removed_count: int) -> None:
        self.log(LedgerEventBuilder.ledger_cleared(removed_count))

    def log_ledger_loaded(self, key: str, count: int) -> None:
        self.log(LedgerEventBuilder.ledger_loaded(key, count))

    def log_storage_read_failed(self, key: str, error_message: str) -> None:
        self.log(LedgerEventBuilder.storage_read_failed(key, error_message))

    def log_storage_write_failed(self, key: str, error_message: str) -> None:
        self.log(LedgerEventBuilder.storage_write_failed(key, error_message))

    def log_duplicate_record_dropped(self, transaction_id: UUID) -> None:
        self.log(LedgerEventBuilder.duplicate_record_dropped(transaction_id))

    def log_categorization_fallback(
        self,
        transaction_type: str,
        category: str,
        error_message: Optional[str],
    ) -> None:
        self.log(LedgerEventBuilder.categorization_fallback(
            transaction_type=transaction_type,
            category=category,
            error_message=error_message,
        ))

    def log_insight_requested(self, generation: int, transaction_count: int) -> None:
        self.log(LedgerEventBuilder.insight_requested(generation, transaction_count))

    def log_insight_completed(self, generation: int) -> None:
        self.log(LedgerEventBuilder.insight_completed(generation))

    def log_insight_fallback(self, generation: int, error_message: Optional[str]) -> None:
        self.log(LedgerEventBuilder.insight_fallback(generation, error_message))

    def log_insight_superseded(self, generation: int, current_generation: int) -> None:
        self.log(LedgerEventBuilder.insight_superseded(generation, current_generation))
