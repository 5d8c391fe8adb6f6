"""
AI Agents for Smart Ledger

DESIGN DECISION: The language model is a best-effort helper, never a
dependency. Both agents return a result object whose value is always
usable - a failed, empty or slow call produces a deterministic fallback
instead of an exception.

BOUNDARIES:

1. CATEGORIZER AGENT:
   - CAN: Suggest a one-word category for a description
   - CANNOT: Block or fail a transaction - fallback is "Income"/"General"
   - One attempt per transaction, no retry

2. INSIGHT AGENT:
   - CAN: Summarize recent history and give one saving tip
   - CAN ONLY SEE: the transactions it is given
   - One attempt per request, no retry
"""

import asyncio
import re
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import google.generativeai as genai

from smart_ledger.audit import AuditLogger
from smart_ledger.config import GeminiSettings, get_settings
from smart_ledger.ledger.aggregator import recent
from smart_ledger.models.transaction import (
    MAX_CATEGORY_LENGTH,
    CategorizationResult,
    InsightResult,
    ResultSource,
    Transaction,
    TransactionType,
    fallback_category,
)


EMPTY_LEDGER_INSIGHT = "Add some transactions to see AI financial insights!"
INSIGHT_UNAVAILABLE = "Unable to generate insights at the moment."

SUGGESTED_CATEGORIES = [
    "Food", "Transport", "Salary", "Rent", "Shopping",
    "Entertainment", "Healthcare", "Bills",
]

DEFAULT_HISTORY_WINDOW = 20

_PUNCTUATION = re.compile(r"[^\w\s]")


class RemoteCallError(Exception):
    """The model call failed, timed out, or returned nothing usable."""
    pass


class _GeminiAgent(ABC):
    """Shared model setup and the single guarded call."""

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model=None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings or get_settings().gemini
        self._audit_logger = audit_logger or AuditLogger()
        self._model = model or self._configure_genai()

    @abstractmethod
    def _generation_config(self) -> dict:
        """Generation parameters for this agent's calls."""
        pass

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config=self._generation_config(),
        )

    async def _generate(self, prompt: str) -> str:
        """
        One model call bounded by the configured timeout.

        Raises:
            RemoteCallError: On any failure or an empty response
        """
        try:
            response = await asyncio.wait_for(
                self._model.generate_content_async(prompt),
                timeout=self._settings.request_timeout_seconds,
            )
            # .text raises ValueError when the response has no parts
            text = response.text
        except asyncio.TimeoutError as e:
            raise RemoteCallError(
                f"Model call timed out after {self._settings.request_timeout_seconds}s"
            ) from e
        except Exception as e:
            raise RemoteCallError(f"Model call failed: {e}") from e

        if not text or not text.strip():
            raise RemoteCallError("Model returned an empty response")
        return text


class CategorizerAgent(_GeminiAgent):
    """
    Maps a free-text description to a short category label.

    The answer is cleaned of punctuation and whitespace. Anything
    unusable becomes the type's fallback category.
    """

    def _generation_config(self) -> dict:
        return {
            "temperature": self._settings.categorize_temperature,
            "max_output_tokens": self._settings.categorize_max_tokens,
        }

    @staticmethod
    def build_prompt(description: str, transaction_type: TransactionType) -> str:
        examples = ", ".join(SUGGESTED_CATEGORIES)
        return (
            f"Categorize this {TransactionType(transaction_type).value} transaction "
            f"description into a single short English word (e.g., {examples}): "
            f"\"{description}\". Return only the category name."
        )

    @staticmethod
    def sanitize(text: str) -> str:
        """Strip punctuation and surrounding whitespace from a model answer."""
        return _PUNCTUATION.sub("", text.strip()).strip()

    async def categorize_detailed(
        self,
        description: str,
        transaction_type: TransactionType,
    ) -> CategorizationResult:
        transaction_type = TransactionType(transaction_type)
        fallback = fallback_category(transaction_type)

        try:
            text = await self._generate(self.build_prompt(description, transaction_type))
        except RemoteCallError as e:
            error = str(e)
        else:
            category = self.sanitize(text)
            if not category:
                error = f"Nothing left after sanitizing {text!r}"
            elif len(category) > MAX_CATEGORY_LENGTH:
                error = f"Category longer than {MAX_CATEGORY_LENGTH} characters"
            else:
                return CategorizationResult(category=category, source=ResultSource.MODEL)

        self._audit_logger.log_categorization_fallback(
            transaction_type=transaction_type.value,
            category=fallback,
            error_message=error,
        )
        return CategorizationResult(
            category=fallback,
            source=ResultSource.FALLBACK,
            error=error,
        )

    async def categorize(
        self,
        description: str,
        transaction_type: TransactionType,
    ) -> str:
        """Category label for a transaction. Never raises."""
        result = await self.categorize_detailed(description, transaction_type)
        return result.category


class InsightAgent(_GeminiAgent):
    """
    Turns recent history into a short spending analysis and one tip.

    Only the transactions passed in are shown to the model.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model=None,
        audit_logger: Optional[AuditLogger] = None,
        history_window: int = DEFAULT_HISTORY_WINDOW,
    ):
        super().__init__(settings=settings, model=model, audit_logger=audit_logger)
        self._history_window = history_window

    def _generation_config(self) -> dict:
        return {"max_output_tokens": self._settings.insight_max_tokens}

    @staticmethod
    def format_history(transactions: Sequence[Transaction]) -> str:
        """One line per transaction: timestamp, signed amount, description, category."""
        lines = []
        for t in transactions:
            sign = "+" if t.type == TransactionType.INCOME else "-"
            lines.append(
                f"{t.date.isoformat()}: {sign}{t.amount} ({t.description} - {t.category})"
            )
        return "\n".join(lines)

    def build_prompt(self, transactions: Sequence[Transaction]) -> str:
        history = self.format_history(recent(transactions, self._history_window))
        return f"""Act as a professional financial advisor. Analyze the following recent transaction history and provide a concise summary (max 3 sentences) of spending habits and one specific tip for saving money. Answer in English.

History:
{history}"""

    async def insights_detailed(
        self,
        transactions: Sequence[Transaction],
        generation: int = 0,
    ) -> InsightResult:
        if not transactions:
            return InsightResult(text=EMPTY_LEDGER_INSIGHT, source=ResultSource.FALLBACK)

        try:
            text = await self._generate(self.build_prompt(transactions))
        except RemoteCallError as e:
            self._audit_logger.log_insight_fallback(generation, str(e))
            return InsightResult(
                text=INSIGHT_UNAVAILABLE,
                source=ResultSource.FALLBACK,
                error=str(e),
            )

        return InsightResult(text=text.strip(), source=ResultSource.MODEL)

    async def insights(self, transactions: Sequence[Transaction]) -> str:
        """Advice text for recent history. Never raises."""
        result = await self.insights_detailed(transactions)
        return result.text
