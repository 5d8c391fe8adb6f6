"""
Audit Models for Smart Ledger

Every ledger mutation and every degraded path (storage failure,
model fallback, superseded insight) is recorded as an event.
This provides:
1. A trail of what happened to the ledger
2. Debugging information when storage or the model misbehave
3. A short activity history the UI can show
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class LedgerEventType(str, Enum):
    """Types of events we audit."""
    # Ledger mutations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REMOVED = "transaction_removed"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    LEDGER_CLEARED = "ledger_cleared"

    # Persistence
    LEDGER_LOADED = "ledger_loaded"
    STORAGE_READ_FAILED = "storage_read_failed"
    STORAGE_WRITE_FAILED = "storage_write_failed"
    DUPLICATE_RECORD_DROPPED = "duplicate_record_dropped"

    # Remote model
    CATEGORIZATION_FALLBACK = "categorization_fallback"
    INSIGHT_REQUESTED = "insight_requested"
    INSIGHT_COMPLETED = "insight_completed"
    INSIGHT_FALLBACK = "insight_fallback"
    INSIGHT_SUPERSEDED = "insight_superseded"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: LedgerEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # The transaction this is about, if any
    entity_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class LedgerEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = LedgerEventBuilder.transaction_added(transaction_id, "Food", "4.50")
        event = LedgerEventBuilder.storage_write_failed("transactions", str(exc))
    """

    @staticmethod
    def transaction_added(
        transaction_id: UUID,
        category: str,
        amount: str,
        transaction_type: str,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_ADDED,
            entity_id=transaction_id,
            description=f"Recorded {transaction_type} of {amount} in {category}",
            details={
                "category": category,
                "amount": amount,
                "type": transaction_type,
            },
        )

    @staticmethod
    def transaction_removed(transaction_id: UUID) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_REMOVED,
            entity_id=transaction_id,
            description="Transaction removed",
        )

    @staticmethod
    def transaction_not_found(transaction_id: UUID) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            entity_id=transaction_id,
            description="Remove requested for an unknown transaction",
        )

    @staticmethod
    def ledger_cleared(removed_count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LEDGER_CLEARED,
            description=f"Ledger cleared ({removed_count} transactions)",
            details={"removed_count": removed_count},
        )

    @staticmethod
    def ledger_loaded(key: str, count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LEDGER_LOADED,
            description=f"Loaded {count} transactions",
            details={"key": key, "count": count},
        )

    @staticmethod
    def storage_read_failed(key: str, error_message: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.STORAGE_READ_FAILED,
            severity=AuditSeverity.WARNING,
            description="Stored ledger unreadable, starting empty",
            details={"key": key},
            error_message=error_message,
        )

    @staticmethod
    def storage_write_failed(key: str, error_message: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.STORAGE_WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            description="Ledger change could not be persisted",
            details={"key": key},
            error_message=error_message,
        )

    @staticmethod
    def duplicate_record_dropped(transaction_id: UUID) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.DUPLICATE_RECORD_DROPPED,
            severity=AuditSeverity.WARNING,
            entity_id=transaction_id,
            description="Stored ledger contained a duplicate id, kept the first",
        )

    @staticmethod
    def categorization_fallback(
        transaction_type: str,
        category: str,
        error_message: Optional[str],
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CATEGORIZATION_FALLBACK,
            severity=AuditSeverity.WARNING,
            description=f"Categorization fell back to {category}",
            details={"type": transaction_type, "category": category},
            error_message=error_message,
        )

    @staticmethod
    def insight_requested(generation: int, transaction_count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.INSIGHT_REQUESTED,
            severity=AuditSeverity.DEBUG,
            description="Insight fetch started",
            details={"generation": generation, "transaction_count": transaction_count},
        )

    @staticmethod
    def insight_completed(generation: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.INSIGHT_COMPLETED,
            severity=AuditSeverity.DEBUG,
            description="Insight updated",
            details={"generation": generation},
        )

    @staticmethod
    def insight_fallback(generation: int, error_message: Optional[str]) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.INSIGHT_FALLBACK,
            severity=AuditSeverity.WARNING,
            description="Insight generation fell back to the default message",
            details={"generation": generation},
            error_message=error_message,
        )

    @staticmethod
    def insight_superseded(generation: int, current_generation: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.INSIGHT_SUPERSEDED,
            severity=AuditSeverity.DEBUG,
            description="Discarded insight for an outdated ledger",
            details={
                "generation": generation,
                "current_generation": current_generation,
            },
        )
