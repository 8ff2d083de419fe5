"""
Data models for the PL/pgSQL test runner.

This package contains Pydantic models for:
- Script runs (classified output, results, tagged outcomes)
- Run board status and summaries
- API request/response bodies
"""

from backend.models.execution import (
    LineKind,
    ClassifiedLine,
    RunCounts,
    ExecutionResult,
    RunReport,
    RunFailure,
    RunOutcome,
    RunStatus,
    RunSummary,
)

from backend.models.api import (
    ConnectRequest,
    ConnectResponse,
    StatusResponse,
    RunTestRequest,
    RunTestResponse,
    ScriptListResponse,
    ScriptStatus,
    RunAllResponse,
    ErrorResponse,
)

__all__ = [
    # execution
    "LineKind",
    "ClassifiedLine",
    "RunCounts",
    "ExecutionResult",
    "RunReport",
    "RunFailure",
    "RunOutcome",
    "RunStatus",
    "RunSummary",
    # api
    "ConnectRequest",
    "ConnectResponse",
    "StatusResponse",
    "RunTestRequest",
    "RunTestResponse",
    "ScriptListResponse",
    "ScriptStatus",
    "RunAllResponse",
    "ErrorResponse",
]
