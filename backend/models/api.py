"""
API Models

Request/response bodies for the runner HTTP API. Field names follow the
browser client (camelCase on input, snake_case on output).
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from backend.models.execution import ClassifiedLine, RunCounts, RunStatus


class ConnectRequest(BaseModel):
    connection_string: str = Field(
        ..., alias="connectionString", description="PostgreSQL DSN"
    )

    model_config = ConfigDict(populate_by_name=True)


class ConnectResponse(BaseModel):
    success: bool
    message: str


class StatusResponse(BaseModel):
    connected: bool


class RunTestRequest(BaseModel):
    script: str = Field(..., min_length=1, description="Script file name")


class RunTestResponse(BaseModel):
    success: bool
    script: str
    output: List[ClassifiedLine]
    counts: RunCounts
    duration_ms: Optional[float] = None


class ScriptListResponse(BaseModel):
    scripts: List[str]


class ScriptStatus(BaseModel):
    script: str
    status: RunStatus


class RunAllResponse(BaseModel):
    success: bool
    results: List[RunTestResponse]


class ErrorResponse(BaseModel):
    """Uniform failure payload for every endpoint."""

    success: bool = False
    error: str
    code: str
    operation: str
    debug: Optional[str] = None
