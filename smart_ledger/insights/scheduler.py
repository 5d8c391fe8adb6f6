"""
Insight Scheduler

Regenerates the AI advisor text after the ledger stops changing.

State machine:
    IDLE --change--> DEBOUNCING --quiet period--> FETCHING --result--> IDLE
      ^                  |  ^                        |
      |                  +--+ change restarts timer   | change supersedes
      +-- empty ledger --------------------------------+

CRITICAL: The newest change always wins. Each change bumps a generation
counter; a result is applied only if its generation is still current.
The running cycle is also cancelled, but the generation check holds
even for an agent that ignores cancellation.

Must be driven from a single asyncio event loop.
"""

import asyncio
from enum import Enum
from typing import Optional, Protocol, Sequence

from smart_ledger.agents.ai_agents import EMPTY_LEDGER_INSIGHT, INSIGHT_UNAVAILABLE
from smart_ledger.audit import AuditLogger
from smart_ledger.ledger.aggregator import recent
from smart_ledger.models.transaction import InsightResult, InsightState, Transaction


class InsightProvider(Protocol):
    async def insights_detailed(
        self,
        transactions: Sequence[Transaction],
        generation: int = 0,
    ) -> InsightResult:
        ...


class SchedulerState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    FETCHING = "fetching"


class InsightScheduler:
    """
    Debounced, superseding insight refresher.

    Subscribe `notify_changed` to the ledger store. Read the current
    advisor text through `insight`.
    """

    def __init__(
        self,
        insight_agent: InsightProvider,
        debounce_seconds: float = 2.0,
        history_window: int = 20,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._agent = insight_agent
        self._debounce_seconds = debounce_seconds
        self._history_window = history_window
        self._audit_logger = audit_logger or AuditLogger()

        self._insight = InsightState()
        self._state = SchedulerState.IDLE
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def insight(self) -> InsightState:
        """A copy of the current advisor state."""
        return self._insight.model_copy()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def closed(self) -> bool:
        return self._closed

    def notify_changed(self, transactions: Sequence[Transaction]) -> None:
        """
        React to a ledger change.

        Cancels whatever cycle is running and starts a new one, or shows
        the empty-ledger placeholder right away.
        """
        if self._closed:
            return

        self._generation += 1
        self._cancel_running()

        if not transactions:
            self._insight = InsightState(text=EMPTY_LEDGER_INSIGHT, loading=False)
            self._state = SchedulerState.IDLE
            return

        window = tuple(recent(transactions, self._history_window))
        self._state = SchedulerState.DEBOUNCING
        task = asyncio.get_running_loop().create_task(
            self._run_cycle(self._generation, window)
        )
        task.add_done_callback(self._on_cycle_done)
        self._task = task

    async def wait_idle(self) -> None:
        """Wait until no cycle is pending or running."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    async def shutdown(self) -> None:
        """Stop for good: cancel any pending timer or fetch and ignore later changes."""
        self._closed = True
        task = self._task
        self._cancel_running()
        if task is not None:
            await asyncio.wait({task})
        self._state = SchedulerState.IDLE

    def _cancel_running(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        if self._state == SchedulerState.FETCHING:
            self._insight = self._insight.model_copy(update={"loading": False})

    async def _run_cycle(self, generation: int, window: tuple[Transaction, ...]) -> None:
        await asyncio.sleep(self._debounce_seconds)
        if generation != self._generation:
            return

        self._state = SchedulerState.FETCHING
        self._insight = self._insight.model_copy(update={"loading": True})
        self._audit_logger.log_insight_requested(generation, len(window))

        result = await self._agent.insights_detailed(window, generation=generation)

        if generation != self._generation:
            self._audit_logger.log_insight_superseded(generation, self._generation)
            return

        self._insight = InsightState(text=result.text, loading=False)
        self._state = SchedulerState.IDLE
        self._audit_logger.log_insight_completed(generation)

    def _on_cycle_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is None or task is not self._task:
            return
        # The agent broke its never-raise contract; show the fallback
        self._audit_logger.log_insight_fallback(self._generation, repr(error))
        self._insight = InsightState(text=INSIGHT_UNAVAILABLE, loading=False)
        self._state = SchedulerState.IDLE
