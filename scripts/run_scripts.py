#!/usr/bin/env python3
"""Run SQL test scripts headlessly and exit non-zero on any failure."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List

from backend.config import settings
from backend.connectors.postgres_pool import PoolManager
from backend.core.errors import RunnerError
from backend.core.runner import ScriptRunner
from backend.core.script_loader import ScriptLoader
from backend.models.execution import RunFailure, RunOutcome

EXIT_OK = 0
EXIT_TESTS_FAILED = 1
EXIT_INFRA_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Execute SQL test scripts and report PASSED/FAILED notices."
    )
    parser.add_argument(
        "scripts",
        nargs="*",
        help="Script file names to run (default: every *.sql script).",
    )
    parser.add_argument(
        "--dsn",
        default=settings.DATABASE_URL,
        help="postgresql:// connection URI (default: DATABASE_URL).",
    )
    parser.add_argument(
        "--scripts-dir",
        type=Path,
        default=None,
        help="Directory holding the scripts (default: backend/sql_tests).",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only print the per-script verdicts.",
    )
    return parser


def _print_outcome(outcome: RunOutcome, quiet: bool) -> None:
    if isinstance(outcome, RunFailure):
        print(f"[runner] {outcome.script}: NOT RUN ({outcome.code}) {outcome.message}")
        return
    result = outcome.result
    if not quiet:
        for line in result.output:
            print(f"  [{line.kind.value:5}] {line.text}")
    verdict = "SUCCESS" if result.success else "FAILED"
    print(
        f"[runner] {outcome.script}: {verdict} "
        f"(passes={result.counts.passes}, failures={result.counts.failures})"
    )


async def _run(args: argparse.Namespace) -> int:
    runner = ScriptRunner(
        pool_manager=PoolManager(),
        loader=ScriptLoader(args.scripts_dir),
        command_timeout=settings.COMMAND_TIMEOUT,
    )
    try:
        await runner.pool_manager.connect(args.dsn)
    except RunnerError as e:
        print(f"[runner] connection failed: {e.message}", file=sys.stderr)
        return EXIT_INFRA_ERROR

    try:
        names: List[str] = list(args.scripts) or runner.loader.list_scripts()
        outcomes: List[RunOutcome] = []
        for name in names:
            outcome = await runner.run_script(name)
            _print_outcome(outcome, args.quiet)
            outcomes.append(outcome)
    finally:
        await runner.pool_manager.close()

    summary = await runner.board.summarize()
    print(
        f"[runner] total={summary.total} success={summary.success} "
        f"failed={summary.failed}"
    )
    if any(isinstance(o, RunFailure) for o in outcomes):
        return EXIT_INFRA_ERROR
    if summary.failed:
        return EXIT_TESTS_FAILED
    return EXIT_OK


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO)
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        print("[runner] interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
