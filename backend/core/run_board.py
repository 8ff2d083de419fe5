"""
Run Board

In-memory status of every known script (pending / running / success /
failed) for the runner page summary. Nothing here is persisted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from backend.models.execution import (
    RunOutcome,
    RunReport,
    RunStatus,
    RunSummary,
)

logger = logging.getLogger(__name__)


class RunBoard:
    def __init__(self) -> None:
        self._statuses: dict[str, RunStatus] = {}
        self._lock = asyncio.Lock()

    async def register(self, scripts: Iterable[str]) -> None:
        """Add scripts as pending; existing entries keep their status."""
        async with self._lock:
            for name in scripts:
                self._statuses.setdefault(name, RunStatus.PENDING)

    async def mark_running(self, script: str) -> None:
        async with self._lock:
            self._statuses[script] = RunStatus.RUNNING

    async def record(self, script: str, outcome: RunOutcome) -> RunStatus:
        """Store the final status of a run and return it."""
        if isinstance(outcome, RunReport) and outcome.result.success:
            final = RunStatus.SUCCESS
        else:
            final = RunStatus.FAILED
        async with self._lock:
            self._statuses[script] = final
        return final

    async def statuses(self) -> dict[str, RunStatus]:
        async with self._lock:
            return dict(self._statuses)

    async def reset(self) -> None:
        """Put every known script back to pending."""
        async with self._lock:
            for name in self._statuses:
                self._statuses[name] = RunStatus.PENDING

    async def summarize(self) -> RunSummary:
        async with self._lock:
            values = list(self._statuses.values())
        return summarize_statuses(values)


def summarize_statuses(values: Iterable[RunStatus]) -> RunSummary:
    summary = RunSummary()
    for value in values:
        summary.total += 1
        if value == RunStatus.PENDING:
            summary.pending += 1
        elif value == RunStatus.RUNNING:
            summary.running += 1
        elif value == RunStatus.SUCCESS:
            summary.success += 1
        elif value == RunStatus.FAILED:
            summary.failed += 1
    return summary
