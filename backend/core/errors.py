"""
Error taxonomy for the script runner.

Every error the runner can report to a caller derives from `RunnerError` and
carries a stable `code` plus the HTTP status the API layer should use.
"""

from __future__ import annotations

from fastapi import status


class RunnerError(Exception):
    """Base class for runner failures that are reported to the caller."""

    code: str = "RUNNER_ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(RunnerError):
    """Missing or malformed connection credentials."""

    code = "CONFIG_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


class NotConnected(RunnerError):
    """A run was requested before any pool was established."""

    code = "NOT_CONNECTED"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str = "Database connection not established. Please connect first.",
    ):
        super().__init__(message)


class ScriptNotFound(RunnerError):
    code = "SCRIPT_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, name: str):
        super().__init__(f"Script not found: {name}")
        self.name = name


class ScriptExecutionError(RunnerError):
    """
    The database rejected a script.

    Recovered inside the execution engine and folded into a failing
    ExecutionResult; it never reaches the API layer.
    """

    code = "SCRIPT_EXECUTION_ERROR"
    status_code = status.HTTP_200_OK


class DatabaseConnectionError(RunnerError):
    """Pool creation, liveness probe, or connection checkout failed."""

    code = "CONNECTION_ERROR"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
