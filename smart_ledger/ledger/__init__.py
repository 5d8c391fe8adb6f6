"""Ledger package: the transaction store and its aggregations."""

from smart_ledger.ledger.aggregator import (
    DEFAULT_DAILY_WINDOW,
    category_breakdown,
    daily_series,
    day_label,
    recent,
    stats,
)
from smart_ledger.ledger.store import LedgerListener, LedgerSnapshot, LedgerStore

__all__ = [
    "DEFAULT_DAILY_WINDOW",
    "LedgerListener",
    "LedgerSnapshot",
    "LedgerStore",
    "category_breakdown",
    "daily_series",
    "day_label",
    "recent",
    "stats",
]
