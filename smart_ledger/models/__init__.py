"""
Data Models Package

This package contains all Pydantic models used in Smart Ledger.
All data flowing through the system must conform to these schemas.
"""

from smart_ledger.models.transaction import (
    MAX_CATEGORY_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    CategorizationResult,
    CategoryBreakdown,
    DailyPoint,
    DerivedStats,
    InsightResult,
    InsightState,
    ResultSource,
    Transaction,
    TransactionDraft,
    TransactionType,
    fallback_category,
)
from smart_ledger.models.audit import (
    AuditSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)

__all__ = [
    # Ledger models
    "MAX_CATEGORY_LENGTH",
    "MAX_DESCRIPTION_LENGTH",
    "CategorizationResult",
    "CategoryBreakdown",
    "DailyPoint",
    "DerivedStats",
    "InsightResult",
    "InsightState",
    "ResultSource",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "fallback_category",
    # Audit models
    "AuditSeverity",
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventType",
]
