"""AI Agents package."""

from smart_ledger.agents.ai_agents import (
    EMPTY_LEDGER_INSIGHT,
    INSIGHT_UNAVAILABLE,
    SUGGESTED_CATEGORIES,
    CategorizerAgent,
    InsightAgent,
    RemoteCallError,
)

__all__ = [
    "EMPTY_LEDGER_INSIGHT",
    "INSIGHT_UNAVAILABLE",
    "SUGGESTED_CATEGORIES",
    "CategorizerAgent",
    "InsightAgent",
    "RemoteCallError",
]
