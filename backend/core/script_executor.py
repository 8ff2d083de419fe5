"""
Script Execution Engine

Runs one SQL test script on a dedicated pooled connection and turns the
notices it raises into an ExecutionResult.

Per run:
- a connection is checked out for exclusive use
- a notice listener is attached to that connection only, feeding a per-run queue
- the whole script is sent as one simple-protocol `execute()` call
- the listener is detached and the connection released on every exit path
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import asyncpg

from backend.connectors.postgres_pool import PoolManager
from backend.core.errors import NotConnected, ScriptExecutionError
from backend.core.notice_classifier import classify_notice
from backend.models.execution import ClassifiedLine, ExecutionResult, LineKind

logger = logging.getLogger(__name__)


@contextmanager
def notice_subscription(conn: Any, sink: asyncio.Queue) -> Iterator[None]:
    """
    Attach a log listener to `conn` that pushes message texts onto `sink`.

    asyncpg invokes listeners as `callback(connection, message)` in the order
    the server sends them.
    """

    def _on_notice(connection: Any, message: Any) -> None:
        text = str(getattr(message, "message", "") or "")
        logger.info("NOTICE: %s", text.strip())
        sink.put_nowait(text)

    conn.add_log_listener(_on_notice)
    try:
        yield
    finally:
        conn.remove_log_listener(_on_notice)


class ScriptExecutor:
    def __init__(
        self,
        pool_manager: PoolManager,
        command_timeout: Optional[float] = None,
    ):
        self._pool_manager = pool_manager
        self.command_timeout = command_timeout

    async def run(self, script_text: str) -> ExecutionResult:
        """
        Execute a script and classify its notices.

        Database errors are captured into the result (one `error` line) and
        never raised.

        Raises:
            NotConnected: no pool has been established
            DatabaseConnectionError: a connection could not be checked out
        """
        if not self._pool_manager.is_connected():
            raise NotConnected()

        notices: asyncio.Queue = asyncio.Queue()
        error: Optional[ScriptExecutionError] = None
        start_time = time.perf_counter()

        async with self._pool_manager.checkout() as conn:
            with notice_subscription(conn, notices):
                try:
                    await conn.execute(script_text, timeout=self.command_timeout)
                    logger.info("Script execution completed.")
                except (
                    asyncpg.PostgresError,
                    asyncpg.InterfaceError,
                    asyncio.TimeoutError,
                ) as e:
                    message = str(e) or type(e).__name__
                    logger.error("SQL Execution Error: %s", message)
                    error = ScriptExecutionError(f"SQL Error: {message}")
                # Let listener callbacks already scheduled by the protocol run
                # before the listener is detached.
                await asyncio.sleep(0)

        result = ExecutionResult()
        while not notices.empty():
            result.add_line(classify_notice(notices.get_nowait()))
        if error is not None:
            result.add_line(ClassifiedLine(kind=LineKind.ERROR, text=error.message))

        result.duration_ms = (time.perf_counter() - start_time) * 1000.0
        logger.info(
            "Run finished: success=%s passes=%d failures=%d (%.1f ms)",
            result.success,
            result.counts.passes,
            result.counts.failures,
            result.duration_ms,
        )
        return result
