"""
API routes for connecting to the database and running SQL test scripts.

The runner and its pool manager live on `app.state` and are injected through
`get_runner`, so tests can swap them with `app.dependency_overrides`.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status

from backend.api.error_handling import error_response, failure_response
from backend.core.runner import ScriptRunner
from backend.models.api import (
    ConnectRequest,
    ConnectResponse,
    ErrorResponse,
    RunAllResponse,
    RunTestRequest,
    RunTestResponse,
    ScriptListResponse,
    ScriptStatus,
    StatusResponse,
)
from backend.models.execution import (
    ClassifiedLine,
    LineKind,
    RunCounts,
    RunFailure,
    RunOutcome,
    RunReport,
    RunSummary,
)

router = APIRouter()
logger = logging.getLogger(__name__)

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
}


def get_runner(request: Request) -> ScriptRunner:
    return request.app.state.runner


def _report_to_response(report: RunReport) -> RunTestResponse:
    return RunTestResponse(
        success=report.result.success,
        script=report.script,
        output=report.result.output,
        counts=report.result.counts,
        duration_ms=report.result.duration_ms,
    )


def _outcome_to_response(outcome: RunOutcome) -> RunTestResponse:
    if isinstance(outcome, RunReport):
        return _report_to_response(outcome)
    return RunTestResponse(
        success=False,
        script=outcome.script or "",
        output=[ClassifiedLine(kind=LineKind.ERROR, text=outcome.message)],
        counts=RunCounts(),
    )


@router.post("/connect", response_model=ConnectResponse, responses=_ERROR_RESPONSES)
async def connect(body: ConnectRequest, runner: ScriptRunner = Depends(get_runner)):
    """
    Establish (or replace) the database connection pool.
    """
    logger.info("Received connection request.")
    try:
        await runner.pool_manager.connect(body.connection_string)
    except Exception as e:
        return error_response("connect", e)
    return ConnectResponse(
        success=True, message="Connection pool initialized successfully."
    )


@router.get("/status", response_model=StatusResponse)
async def connection_status(runner: ScriptRunner = Depends(get_runner)):
    """Whether a pool is established (used to enable the run buttons)."""
    return StatusResponse(connected=runner.pool_manager.is_connected())


@router.get("/scripts", response_model=ScriptListResponse)
async def list_scripts(runner: ScriptRunner = Depends(get_runner)):
    return ScriptListResponse(scripts=runner.loader.list_scripts())


@router.post(
    "/run-test", response_model=RunTestResponse, responses=_ERROR_RESPONSES
)
async def run_test(body: RunTestRequest, runner: ScriptRunner = Depends(get_runner)):
    """
    Run one SQL test script.

    A script that runs but fails (FAILED notices or a SQL error) is a normal
    200 response with success=false. Error status codes are reserved for runs
    that could not be attempted.
    """
    try:
        outcome = await runner.run_script(body.script)
    except Exception as e:
        return error_response("run test", e)

    if isinstance(outcome, RunFailure):
        return failure_response("run test", outcome)
    return _report_to_response(outcome)


@router.post("/run-all", response_model=RunAllResponse, responses=_ERROR_RESPONSES)
async def run_all(runner: ScriptRunner = Depends(get_runner)):
    """Run every script sequentially."""
    try:
        outcomes = await runner.run_all()
    except Exception as e:
        return error_response("run all", e)

    results = [_outcome_to_response(o) for o in outcomes]
    return RunAllResponse(
        success=all(r.success for r in results),
        results=results,
    )


@router.get("/summary", response_model=RunSummary)
async def summary(runner: ScriptRunner = Depends(get_runner)):
    return await runner.summary()


@router.get("/summary/scripts", response_model=list[ScriptStatus])
async def script_statuses(runner: ScriptRunner = Depends(get_runner)):
    await runner.summary()
    statuses = await runner.board.statuses()
    return [ScriptStatus(script=k, status=v) for k, v in sorted(statuses.items())]


@router.delete("/summary", response_model=RunSummary)
async def reset_summary(runner: ScriptRunner = Depends(get_runner)):
    """Clear all results back to pending."""
    await runner.reset()
    return await runner.summary()
