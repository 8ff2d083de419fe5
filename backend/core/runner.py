"""
Script Runner

Entry point used by the API and the CLI: resolves a script name, executes it
on the shared pool, records the verdict on the run board, and returns a tagged
outcome.

- `RunReport`: the script ran; `result.success` says whether it passed
- `RunFailure`: the script could not be attempted (no pool, unknown script,
  connection checkout failed)
"""

from __future__ import annotations

import logging
from typing import List, Optional

from backend.connectors.postgres_pool import PoolManager
from backend.core.errors import NotConnected, RunnerError
from backend.core.run_board import RunBoard
from backend.core.script_executor import ScriptExecutor
from backend.core.script_loader import ScriptLoader, safe_script_name
from backend.models.execution import RunFailure, RunOutcome, RunReport, RunSummary

logger = logging.getLogger(__name__)


def failure_from_error(script: Optional[str], exc: RunnerError) -> RunFailure:
    return RunFailure(
        script=script,
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
    )


class ScriptRunner:
    def __init__(
        self,
        pool_manager: PoolManager,
        loader: Optional[ScriptLoader] = None,
        board: Optional[RunBoard] = None,
        command_timeout: Optional[float] = None,
    ):
        self.pool_manager = pool_manager
        self.loader = loader or ScriptLoader()
        self.board = board or RunBoard()
        self.executor = ScriptExecutor(pool_manager, command_timeout=command_timeout)

    async def run_script(self, name: str) -> RunOutcome:
        """Run one script by name; never raises for runner errors."""
        script = safe_script_name(name)
        try:
            if not self.pool_manager.is_connected():
                raise NotConnected()
            sql_content = self.loader.resolve(name)
        except RunnerError as e:
            logger.warning("Cannot run %r: %s", script, e.message)
            return failure_from_error(script, e)

        logger.info(f"Executing script: {script}")
        await self.board.mark_running(script)
        try:
            result = await self.executor.run(sql_content)
        except RunnerError as e:
            logger.error(f"Error running script {script}: {e.message}")
            outcome: RunOutcome = failure_from_error(script, e)
        except Exception as e:
            await self.board.record(
                script,
                RunFailure(script=script, code="INTERNAL_ERROR", message=str(e)),
            )
            raise
        else:
            outcome = RunReport(script=script, result=result)

        await self.board.record(script, outcome)
        return outcome

    async def run_all(self) -> List[RunOutcome]:
        """
        Run every available script one after another.

        Raises:
            NotConnected: no pool has been established
        """
        if not self.pool_manager.is_connected():
            raise NotConnected()
        outcomes: List[RunOutcome] = []
        for name in self.loader.list_scripts():
            outcomes.append(await self.run_script(name))
        return outcomes

    async def summary(self) -> RunSummary:
        await self.board.register(self.loader.list_scripts())
        return await self.board.summarize()

    async def reset(self) -> None:
        await self.board.reset()
