"""
Shared test fixtures.

No real Gemini calls: model and agent fakes stand in for the network.
"""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest

from smart_ledger.audit import AuditLogger
from smart_ledger.config import GeminiSettings
from smart_ledger.models.transaction import (
    InsightResult,
    ResultSource,
    Transaction,
    TransactionType,
)
from smart_ledger.services.storage import InMemoryKeyValueStore


def make_transaction(
    description: str = "Coffee",
    amount: str = "4.50",
    transaction_type: TransactionType = TransactionType.EXPENSE,
    category: str = "Food",
    date: Optional[datetime] = None,
) -> Transaction:
    return Transaction(
        amount=Decimal(amount),
        description=description,
        type=transaction_type,
        category=category,
        date=date or datetime(2024, 12, 15, 9, 30, tzinfo=timezone.utc),
    )


class FakeResponse:
    def __init__(self, text):
        self._text = text

    @property
    def text(self):
        if isinstance(self._text, Exception):
            raise self._text
        return self._text


class FakeModel:
    """
    Stands in for genai.GenerativeModel.

    `reply` is returned as response text; an exception instance is
    raised instead. `delay` simulates a slow call.
    """

    def __init__(self, reply="Food", delay: float = 0.0, response_error: Optional[Exception] = None):
        self.reply = reply
        self.delay = delay
        self.response_error = response_error
        self.prompts: list[str] = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.reply, Exception):
            raise self.reply
        if self.response_error is not None:
            return FakeResponse(self.response_error)
        return FakeResponse(self.reply)


class RecordingInsightAgent:
    """
    Insight agent fake for the scheduler.

    Records (loop time, transactions, generation) for every call and
    answers after the next delay in `delays`.
    """

    def __init__(self, delays=None):
        self.calls = []
        self._delays = list(delays or [])

    async def insights_detailed(self, transactions, generation=0):
        loop = asyncio.get_running_loop()
        self.calls.append((loop.time(), tuple(transactions), generation))
        number = len(self.calls)
        delay = self._delays.pop(0) if self._delays else 0.0
        await self._wait(delay)
        return InsightResult(text=f"insight #{number}", source=ResultSource.MODEL)

    async def _wait(self, delay):
        await asyncio.sleep(delay)


class StubbornInsightAgent(RecordingInsightAgent):
    """Ignores cancellation and answers late anyway."""

    async def _wait(self, delay):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + delay
        while loop.time() < deadline:
            try:
                await asyncio.sleep(deadline - loop.time())
            except asyncio.CancelledError:
                continue


class FailingInsightAgent:
    """Breaks the never-raise contract."""

    async def insights_detailed(self, transactions, generation=0):
        raise RuntimeError("boom")


@pytest.fixture
def gemini_settings():
    return GeminiSettings(api_key="test-key", request_timeout_seconds=0.2)


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def memory_storage():
    return InMemoryKeyValueStore()
