"""
Core Data Models for Smart Ledger

These models define the schemas for all data flowing through the ledger.
They are designed to:
1. Reject invalid input at the boundary (empty description, negative amount)
2. Be immutable once recorded
3. Serialize to the exact JSON layout kept in local storage

DESIGN DECISION: Amounts are Decimal in memory and plain JSON numbers on disk.
Floats never take part in arithmetic; they only exist in the stored file.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money for a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class ResultSource(str, Enum):
    """Where a remote-call result came from."""
    MODEL = "model"
    FALLBACK = "fallback"


# Category used when the model gives nothing usable
FALLBACK_CATEGORIES = {
    TransactionType.INCOME: "Income",
    TransactionType.EXPENSE: "General",
}


# Field limits shared with the categorizer and the input form
MAX_DESCRIPTION_LENGTH = 500
MAX_CATEGORY_LENGTH = 100


def fallback_category(transaction_type: TransactionType) -> str:
    """Deterministic category for a transaction type."""
    return FALLBACK_CATEGORIES[TransactionType(transaction_type)]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    A transaction before it enters the ledger.

    The ledger assigns the id. Everything else is fixed here and
    validated at construction, so invalid drafts never reach the store.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    amount: Decimal = Field(
        ...,
        ge=0,
        description="Non-negative amount in the ledger currency"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=MAX_DESCRIPTION_LENGTH,
        description="What the money was for"
    )
    type: TransactionType = Field(
        ...,
        description="Income or expense"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=MAX_CATEGORY_LENGTH,
        description="Short category label"
    )
    date: datetime = Field(
        default_factory=utc_now,
        description="When the transaction was recorded"
    )

    @field_validator("amount", mode="before")
    @classmethod
    def amount_from_float(cls, v):
        """Go through str so 4.5 becomes Decimal('4.5'), not its binary expansion."""
        if isinstance(v, float):
            return Decimal(str(v))
        return v


class Transaction(TransactionDraft):
    """
    A recorded transaction.

    Immutable. The field names are the storage layout:
    id, amount, description, type, category, date.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID, never reused"
    )

    @classmethod
    def from_draft(cls, draft: TransactionDraft, transaction_id: Optional[UUID] = None) -> "Transaction":
        return cls(
            id=transaction_id or uuid4(),
            **draft.model_dump(),
        )

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)

    @property
    def signed_amount(self) -> Decimal:
        """Positive for income, negative for expense."""
        if self.type == TransactionType.INCOME:
            return self.amount
        return -self.amount

    def to_storage_dict(self) -> dict:
        """Record layout used in local storage."""
        return self.model_dump(mode="json", include={
            "id", "amount", "description", "type", "category", "date",
        })


# =============================================================================
# DERIVED VIEWS - recomputed on every read
# =============================================================================

class DerivedStats(BaseModel):
    """Balance and totals for a ledger."""
    model_config = ConfigDict(frozen=True)

    balance: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")


# category -> summed expense, in first-seen order
CategoryBreakdown = dict[str, Decimal]


class DailyPoint(BaseModel):
    """One calendar-day bucket of the cash-flow chart."""
    model_config = ConfigDict(frozen=True)

    label: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


# =============================================================================
# INSIGHTS AND REMOTE-CALL RESULTS
# =============================================================================

class InsightState(BaseModel):
    """
    What the advisor panel shows.

    There is exactly one of these per running app and only the
    insight scheduler writes to it.
    """

    text: str = "Analyzing your financial data..."
    loading: bool = False


class CategorizationResult(BaseModel):
    """
    Outcome of asking the model for a category.

    A fallback is a normal result, not an error: `category` is always usable.
    """
    model_config = ConfigDict(frozen=True)

    category: str = Field(..., min_length=1)
    source: ResultSource
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.source == ResultSource.FALLBACK


class InsightResult(BaseModel):
    """Outcome of asking the model for spending advice."""
    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1)
    source: ResultSource
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.source == ResultSource.FALLBACK
