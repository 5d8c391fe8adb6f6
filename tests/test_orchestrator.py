"""End-to-end flow tests with fake models and in-memory storage."""

import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from conftest import FakeModel, RecordingInsightAgent
from smart_ledger.agents import INSIGHT_UNAVAILABLE, CategorizerAgent
from smart_ledger.config import get_settings
from smart_ledger.insights import InsightScheduler
from smart_ledger.ledger import LedgerStore
from smart_ledger.models.transaction import (
    MAX_DESCRIPTION_LENGTH,
    DailyPoint,
    TransactionType,
)
from smart_ledger.orchestrator import LedgerFlow, create_app_components
from smart_ledger.services.storage import InMemoryKeyValueStore


DEC_15 = datetime(2024, 12, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def model():
    return FakeModel(reply="Food")


@pytest.fixture
def insight_agent():
    return RecordingInsightAgent()


@pytest.fixture
def flow(model, insight_agent, memory_storage, gemini_settings, audit_logger):
    store = LedgerStore(memory_storage, audit_logger=audit_logger)
    categorizer = CategorizerAgent(settings=gemini_settings, model=model, audit_logger=audit_logger)
    scheduler = InsightScheduler(
        insight_agent=insight_agent,
        debounce_seconds=0.01,
        audit_logger=audit_logger,
    )
    return LedgerFlow(store=store, categorizer=categorizer, scheduler=scheduler)


class TestLedgerFlow:
    """Tests for the add / delete / clear flows."""

    @pytest.mark.asyncio
    async def test_add_and_delete_scenario(self, flow, model, memory_storage):
        """Test balance and totals through a short session."""
        flow.start()

        coffee = await flow.add_transaction("Coffee", Decimal("4.50"), TransactionType.EXPENSE)
        salary = await flow.add_transaction("Salary", "2000", "income", category="Salary")

        assert coffee.category == "Food"
        assert salary.category == "Salary"
        assert len(model.prompts) == 1

        dashboard = flow.dashboard()
        assert dashboard.transactions == (salary, coffee)
        assert dashboard.stats.balance == Decimal("1995.50")
        assert dashboard.stats.total_income == Decimal("2000")
        assert dashboard.stats.total_expense == Decimal("4.50")

        assert flow.delete_transaction(coffee.id) is True
        dashboard = flow.dashboard()
        assert dashboard.stats.balance == Decimal("2000")
        assert dashboard.stats.total_expense == Decimal("0")
        assert json.loads(memory_storage.get("transactions")) == [salary.to_storage_dict()]

        await flow.shutdown()

    @pytest.mark.asyncio
    async def test_empty_description_never_reaches_model(self, flow, model):
        """Test input validation happens before categorization."""
        flow.start()
        with pytest.raises(ValidationError):
            await flow.add_transaction("   ", "5", "expense")
        with pytest.raises(ValidationError):
            await flow.add_transaction("Refund", "-5", "expense")

        assert model.prompts == []
        assert len(flow.store) == 0
        await flow.shutdown()

    @pytest.mark.asyncio
    async def test_model_failure_still_records(self, memory_storage, gemini_settings, audit_logger):
        """Test that a failing model yields the fallback category."""
        categorizer = CategorizerAgent(
            settings=gemini_settings,
            model=FakeModel(reply=ConnectionError("offline")),
            audit_logger=audit_logger,
        )
        flow = LedgerFlow(LedgerStore(memory_storage, audit_logger=audit_logger), categorizer)

        expense = await flow.add_transaction("Mystery", "10", "expense")
        income = await flow.add_transaction("Bonus", "50", "income")

        assert expense.category == "General"
        assert income.category == "Income"
        assert len(flow.store) == 2

    @pytest.mark.asyncio
    async def test_overlong_model_category_still_records(self, memory_storage, gemini_settings, audit_logger):
        """Test that a rambling model answer cannot lose the transaction."""
        categorizer = CategorizerAgent(
            settings=gemini_settings,
            model=FakeModel(reply="Groceries " * 15),
            audit_logger=audit_logger,
        )
        flow = LedgerFlow(LedgerStore(memory_storage, audit_logger=audit_logger), categorizer)

        transaction = await flow.add_transaction("Coffee", "4.50", "expense")

        assert transaction.category == "General"
        assert flow.store.transactions == (transaction,)
        assert json.loads(memory_storage.get("transactions")) == [transaction.to_storage_dict()]

    @pytest.mark.asyncio
    async def test_overlong_description_never_reaches_model(self, flow, model):
        """Test the description limit is enforced before categorization."""
        flow.start()
        with pytest.raises(ValidationError):
            await flow.add_transaction("x" * (MAX_DESCRIPTION_LENGTH + 1), "5", "expense")

        assert model.prompts == []
        assert len(flow.store) == 0
        await flow.shutdown()

    @pytest.mark.asyncio
    async def test_clear_all_shows_placeholder(self, flow):
        """Test clearing the ledger resets stats and the advisor."""
        flow.start()
        await flow.add_transaction("Coffee", "4.50", "expense")
        flow.clear_all()

        dashboard = flow.dashboard()
        assert dashboard.transactions == ()
        assert dashboard.stats.balance == Decimal("0")
        assert dashboard.insight.text == "Add some transactions to see AI financial insights!"
        await flow.shutdown()

    @pytest.mark.asyncio
    async def test_ledger_survives_restart(self, flow, memory_storage, gemini_settings, audit_logger):
        """Test that a new flow over the same storage sees the same ledger."""
        flow.start()
        await flow.add_transaction("Coffee", "4.50", "expense")
        await flow.add_transaction("Lunch", "12", "expense")
        await flow.shutdown()

        restarted = LedgerFlow(
            LedgerStore(memory_storage, audit_logger=audit_logger),
            CategorizerAgent(settings=gemini_settings, model=FakeModel(), audit_logger=audit_logger),
        )
        assert restarted.start() == flow.store.transactions


class TestDashboard:
    """Tests for the dashboard snapshot."""

    @pytest.mark.asyncio
    async def test_dashboard_contents(self, flow, insight_agent):
        """Test charts and advisor text in one snapshot."""
        flow.start()
        await flow.add_transaction("Coffee", "4.50", "expense", date=DEC_15)
        await flow.add_transaction("Salary", "2000", "income", category="Salary", date=DEC_15)
        await flow.add_transaction("Bus", "2", "expense", category="Transport", date=DEC_15)
        await flow.scheduler.wait_idle()

        dashboard = flow.dashboard()

        assert dashboard.category_breakdown == {
            "Transport": Decimal("2"),
            "Food": Decimal("4.50"),
        }
        assert dashboard.daily_series == [
            DailyPoint(label="15 Dec", income=Decimal("2000"), expense=Decimal("6.50")),
        ]
        assert dashboard.insight.text == f"insight #{len(insight_agent.calls)}"
        assert dashboard.insight.loading is False
        await flow.shutdown()


class TestCreateAppComponents:
    """Tests for the component factory."""

    @pytest.mark.asyncio
    async def test_runs_without_gemini_key(self, monkeypatch, tmp_path):
        """Test that a missing API key degrades to fallbacks."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.setenv("INSIGHTS_DEBOUNCE_SECONDS", "0.01")
        get_settings.cache_clear()

        flow = create_app_components(storage=InMemoryKeyValueStore())
        assert flow.start() == ()

        expense = await flow.add_transaction("Coffee", "4.50", "expense")
        income = await flow.add_transaction("Bonus", "100", "income")
        await flow.scheduler.wait_idle()

        assert expense.category == "General"
        assert income.category == "Income"
        assert flow.dashboard().insight.text == INSIGHT_UNAVAILABLE
        await flow.shutdown()
        get_settings.cache_clear()

    @pytest.mark.asyncio
    async def test_uses_configured_storage_key(self, monkeypatch, tmp_path, gemini_settings):
        """Test that the storage key comes from settings."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("LEDGER_STORAGE_TRANSACTIONS_KEY", "ledger-test")
        monkeypatch.setenv("INSIGHTS_DEBOUNCE_SECONDS", "0.01")
        get_settings.cache_clear()
        storage = InMemoryKeyValueStore()

        flow = create_app_components(
            storage=storage,
            categorizer=CategorizerAgent(settings=gemini_settings, model=FakeModel()),
            insight_agent=RecordingInsightAgent(),
        )
        flow.start()
        await flow.add_transaction("Coffee", "4.50", "expense")

        assert storage.keys() == ["ledger-test"]
        await flow.shutdown()
        get_settings.cache_clear()
