"""
Global pytest configuration and fixtures for the test runner tests.

This module provides:
- A patched `asyncpg.create_pool` backed by an in-memory fake database
- Script directory fixtures
- FastAPI test client fixtures

No live Postgres is needed; see fakes.py for the asyncpg stand-ins.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Generator
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from backend.connectors.postgres_pool import PoolManager, PostgresConnectionPool
from backend.core.runner import ScriptRunner
from backend.core.script_loader import ScriptLoader
from fakes import MIXED_SCRIPT, PASSING_SCRIPT, FakeDatabase


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def fake_db() -> Generator[FakeDatabase, None, None]:
    """
    Route asyncpg.create_pool to an in-memory fake database.

    The two scripts from `scripts_dir` are pre-registered with their notices.
    """
    db = FakeDatabase()
    db.add_script(PASSING_SCRIPT, ["test_one PASSED"])
    db.add_script(MIXED_SCRIPT, ["test_a PASSED", "test_b FAILED"])
    with patch(
        "backend.connectors.postgres_pool.asyncpg.create_pool",
        new=AsyncMock(side_effect=db.create_pool),
    ):
        yield db


def small_pool_factory(max_size: int) -> Callable[[str], PostgresConnectionPool]:
    def _factory(dsn: str) -> PostgresConnectionPool:
        return PostgresConnectionPool(
            dsn=dsn,
            min_size=1,
            max_size=max_size,
            max_retries=1,
            retry_delay=0.0,
            acquire_timeout=2.0,
        )

    return _factory


@pytest.fixture
def pool_manager(fake_db: FakeDatabase) -> PoolManager:
    return PoolManager(pool_factory=small_pool_factory(4))


# =============================================================================
# Script Directory Fixtures
# =============================================================================


@pytest.fixture
def scripts_dir(tmp_path: Path) -> Path:
    """A scripts directory with two test scripts, plus a file just outside it."""
    root = tmp_path / "sql_tests"
    root.mkdir()
    (root / "passing.sql").write_text(PASSING_SCRIPT, encoding="utf-8")
    (root / "mixed.sql").write_text(MIXED_SCRIPT, encoding="utf-8")
    (root / "notes.txt").write_text("not a script", encoding="utf-8")
    (tmp_path / "secret.sql").write_text("SELECT 'outside';", encoding="utf-8")
    return root


@pytest.fixture
def runner(pool_manager: PoolManager, scripts_dir: Path) -> ScriptRunner:
    return ScriptRunner(pool_manager=pool_manager, loader=ScriptLoader(scripts_dir))


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================


@pytest.fixture
def client(runner: ScriptRunner) -> Generator[TestClient, None, None]:
    """
    FastAPI test client wired to a runner backed by the fake database.
    """
    from backend.main import app

    previous = app.state.runner
    app.state.runner = runner
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.state.runner = previous
