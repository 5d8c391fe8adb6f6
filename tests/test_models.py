"""
Tests for Smart Ledger

Test strategy:
1. Unit tests for individual components (models, storage, aggregations)
2. Flow tests with fake models and in-memory storage
3. No real API calls in tests (use fakes)
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from smart_ledger.models.audit import (
    AuditSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)
from smart_ledger.models.transaction import (
    CategorizationResult,
    InsightState,
    ResultSource,
    Transaction,
    TransactionDraft,
    TransactionType,
    fallback_category,
)


class TestTransactionModels:
    """Tests for transaction-related Pydantic models."""

    def test_draft_creation(self):
        """Test TransactionDraft model creation."""
        draft = TransactionDraft(
            amount=Decimal("4.50"),
            description="Coffee",
            type=TransactionType.EXPENSE,
            category="Food",
        )
        assert draft.amount == Decimal("4.50")
        assert draft.type == TransactionType.EXPENSE
        assert draft.date.tzinfo is not None

    def test_draft_strips_whitespace(self):
        """Test that whitespace is stripped from text fields."""
        draft = TransactionDraft(
            amount=1, description="  Coffee  ", type="expense", category=" Food ",
        )
        assert draft.description == "Coffee"
        assert draft.category == "Food"

    def test_draft_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            TransactionDraft(
                amount=Decimal("-1"), description="Refund", type="expense", category="General",
            )

    def test_draft_rejects_empty_description(self):
        """Test that a blank description is rejected at the boundary."""
        with pytest.raises(ValidationError):
            TransactionDraft(amount=1, description="   ", type="expense", category="General")

    def test_draft_rejects_unknown_type(self):
        """Test that only income and expense are accepted."""
        with pytest.raises(ValidationError):
            TransactionDraft(amount=1, description="Gift", type="transfer", category="General")

    def test_float_amount_keeps_its_decimal_digits(self):
        """Test that 4.5 becomes Decimal('4.5'), not a binary expansion."""
        draft = TransactionDraft(amount=4.5, description="Coffee", type="expense", category="Food")
        assert draft.amount == Decimal("4.5")
        assert str(draft.amount) == "4.5"

    def test_transaction_from_draft_assigns_id(self):
        """Test that Transaction.from_draft copies fields and assigns an id."""
        draft = TransactionDraft(amount=10, description="Lunch", type="expense", category="Food")
        transaction = Transaction.from_draft(draft)
        assert isinstance(transaction.id, UUID)
        assert transaction.description == "Lunch"
        assert transaction.date == draft.date

    def test_transaction_is_immutable(self):
        """Test that recorded transactions cannot be changed."""
        transaction = Transaction(amount=1, description="Tea", type="expense", category="Food")
        with pytest.raises(ValidationError):
            transaction.amount = Decimal("2")

    def test_storage_dict_layout(self):
        """Test the JSON record layout kept in local storage."""
        transaction_id = uuid4()
        transaction = Transaction(
            id=transaction_id,
            amount=Decimal("4.50"),
            description="Coffee",
            type=TransactionType.EXPENSE,
            category="Food",
            date=datetime(2024, 12, 15, 9, 30, tzinfo=timezone.utc),
        )
        record = transaction.to_storage_dict()
        assert set(record) == {"id", "amount", "description", "type", "category", "date"}
        assert record["id"] == str(transaction_id)
        assert record["amount"] == 4.5
        assert record["type"] == "expense"
        assert record["date"].startswith("2024-12-15T09:30:00")
        # Valid JSON with a numeric amount
        assert json.loads(json.dumps(record))["amount"] == 4.5

    def test_storage_dict_loads_back(self):
        """Test that a stored record validates into an equal Transaction."""
        transaction = Transaction(amount=Decimal("12.34"), description="Taxi", type="expense", category="Transport")
        restored = Transaction.model_validate(json.loads(json.dumps(transaction.to_storage_dict())))
        assert restored == transaction

    def test_signed_amount(self):
        """Test signed amount for income and expense."""
        income = Transaction(amount=100, description="Salary", type="income", category="Salary")
        expense = Transaction(amount=40, description="Dinner", type="expense", category="Food")
        assert income.signed_amount == Decimal("100")
        assert expense.signed_amount == Decimal("-40")


class TestFallbacksAndResults:
    """Tests for fallback categories and result types."""

    def test_fallback_category_per_type(self):
        """Test the deterministic fallback categories."""
        assert fallback_category(TransactionType.INCOME) == "Income"
        assert fallback_category(TransactionType.EXPENSE) == "General"
        assert fallback_category("expense") == "General"

    def test_categorization_result_flags_fallback(self):
        """Test is_fallback on result objects."""
        model = CategorizationResult(category="Food", source=ResultSource.MODEL)
        fallback = CategorizationResult(category="General", source=ResultSource.FALLBACK, error="timeout")
        assert model.is_fallback is False
        assert fallback.is_fallback is True

    def test_insight_state_defaults(self):
        """Test the initial advisor state."""
        state = InsightState()
        assert state.text == "Analyzing your financial data..."
        assert state.loading is False


class TestAuditModels:
    """Tests for audit-related models."""

    def test_event_creation(self):
        """Test LedgerEvent model creation."""
        event = LedgerEvent(
            event_type=LedgerEventType.LEDGER_CLEARED,
            description="Ledger cleared",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.entity_id is None

    def test_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        transaction_id = uuid4()
        event = LedgerEventBuilder.transaction_added(
            transaction_id=transaction_id,
            category="Food",
            amount="4.50",
            transaction_type="expense",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "transaction_added"
        assert log_dict["entity_id"] == str(transaction_id)
        assert log_dict["details"]["category"] == "Food"

    def test_builder_storage_write_failed_is_error(self):
        """Test that write failures are logged at error severity."""
        event = LedgerEventBuilder.storage_write_failed("transactions", "disk full")
        assert event.event_type == LedgerEventType.STORAGE_WRITE_FAILED
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "disk full"

    def test_builder_insight_superseded(self):
        """Test superseded insight events carry both generations."""
        event = LedgerEventBuilder.insight_superseded(generation=1, current_generation=3)
        assert event.details == {"generation": 1, "current_generation": 3}
