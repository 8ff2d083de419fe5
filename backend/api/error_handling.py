"""
Centralized API error handling helpers.

Goal: every failure reaches the browser as the same JSON shape, so the UI can
tell "could not run the script" (connection / lookup problems) apart from
"the script ran and its tests failed" (a normal run response with
success=false).
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass

from fastapi import status
from fastapi.responses import JSONResponse

from backend.config import settings
from backend.core.errors import RunnerError
from backend.models.api import ErrorResponse
from backend.models.execution import RunFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApiError:
    status_code: int
    code: str
    message: str
    debug: str | None = None


def _maybe_debug(exc: BaseException) -> str | None:
    if settings.APP_DEBUG:
        return str(exc)
    return None


def classify_error(exc: BaseException) -> ApiError:
    """Map an exception to a status code and user-facing message."""
    if isinstance(exc, RunnerError):
        return ApiError(
            status_code=exc.status_code,
            code=exc.code,
            message=exc.message,
        )
    return ApiError(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="INTERNAL_ERROR",
        message="An unexpected error occurred.",
        debug=_maybe_debug(exc),
    )


def _response(operation: str, err: ApiError) -> JSONResponse:
    payload = ErrorResponse(
        error=err.message,
        code=err.code,
        operation=operation,
        debug=err.debug,
    )
    return JSONResponse(
        status_code=err.status_code,
        content=payload.model_dump(exclude_none=True),
    )


def error_response(operation: str, exc: BaseException) -> JSONResponse:
    """
    Convert an exception into a consistent JSON error response.
    """
    if isinstance(exc, RunnerError):
        logger.warning("API error during '%s': %s", operation, exc.message)
    else:
        # Log the full traceback to the server console for debugging
        logger.error(
            "API error during '%s': %s\n%s",
            operation,
            exc,
            traceback.format_exc(),
        )
    return _response(operation, classify_error(exc))


def failure_response(operation: str, failure: RunFailure) -> JSONResponse:
    return _response(
        operation,
        ApiError(
            status_code=failure.status_code,
            code=failure.code,
            message=failure.message,
        ),
    )


def invalid_request_response(operation: str, message: str) -> JSONResponse:
    return _response(
        operation,
        ApiError(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="INVALID_REQUEST",
            message=message,
        ),
    )
