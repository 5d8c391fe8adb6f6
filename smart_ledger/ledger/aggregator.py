"""
Ledger Aggregations

DESIGN DECISION: All derived numbers are pure functions of a ledger
snapshot and are recomputed on every call. There is no cache, so a
stale total is impossible by construction.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from smart_ledger.models.transaction import (
    CategoryBreakdown,
    DailyPoint,
    DerivedStats,
    Transaction,
    TransactionType,
)


DEFAULT_DAILY_WINDOW = 10


def recent(ledger: Sequence[Transaction], n: int) -> list[Transaction]:
    """
    The n most recently added transactions, in ledger order.

    The ledger is newest-first, so this is its head. A literal trailing
    slice (`ledger[-n:]`) would give the oldest n instead.
    """
    if n <= 0:
        return []
    return list(ledger[:n])


def stats(ledger: Iterable[Transaction]) -> DerivedStats:
    """Balance, total income and total expense."""
    total_income = Decimal("0")
    total_expense = Decimal("0")
    for transaction in ledger:
        if transaction.type == TransactionType.INCOME:
            total_income += transaction.amount
        else:
            total_expense += transaction.amount

    return DerivedStats(
        balance=total_income - total_expense,
        total_income=total_income,
        total_expense=total_expense,
    )


def category_breakdown(ledger: Iterable[Transaction]) -> CategoryBreakdown:
    """Summed expense per category, in first-seen order."""
    totals: CategoryBreakdown = {}
    for transaction in ledger:
        if transaction.type != TransactionType.EXPENSE:
            continue
        totals[transaction.category] = (
            totals.get(transaction.category, Decimal("0")) + transaction.amount
        )
    return totals


def day_label(moment: datetime) -> str:
    """Day-granularity chart label, e.g. '19 Oct'."""
    return f"{moment.day} {moment.strftime('%b')}"


def daily_series(
    ledger: Sequence[Transaction],
    window_size: int = DEFAULT_DAILY_WINDOW,
) -> list[DailyPoint]:
    """
    Income and expense per calendar day over the last `window_size`
    transactions (not days).

    Buckets appear in the order their first transaction is met in the
    window.
    """
    income: dict[str, Decimal] = {}
    expense: dict[str, Decimal] = {}

    for transaction in recent(ledger, window_size):
        label = day_label(transaction.date)
        income.setdefault(label, Decimal("0"))
        expense.setdefault(label, Decimal("0"))
        if transaction.type == TransactionType.INCOME:
            income[label] += transaction.amount
        else:
            expense[label] += transaction.amount

    return [
        DailyPoint(label=label, income=income[label], expense=expense[label])
        for label in income
    ]
