"""Insight scheduling package."""

from smart_ledger.insights.scheduler import (
    InsightProvider,
    InsightScheduler,
    SchedulerState,
)

__all__ = ["InsightProvider", "InsightScheduler", "SchedulerState"]
