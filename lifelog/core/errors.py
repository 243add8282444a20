"""
Custom exception hierarchy for the Lifelog API.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class LifelogException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class WindowNotElapsedError(LifelogException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "WINDOW_NOT_ELAPSED"

    def __init__(self, start: date, end: date, today: date):
        super().__init__(
            message=(
                f"Period {start} → {end} has not fully elapsed yet. "
                "Only past periods can be summarized."
            ),
            details={"start": str(start), "end": str(end), "today": str(today)},
        )


class EmptyWindowError(LifelogException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "EMPTY_WINDOW"

    def __init__(self, start: date, end: date, kind: str):
        super().__init__(
            message=f"No source records between {start} and {end}.",
            details={"start": str(start), "end": str(end), "kind": kind},
        )


class ExternalCallFailedError(LifelogException):
    http_status = status.HTTP_502_BAD_GATEWAY
    code = "EXTERNAL_CALL_FAILED"

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(
            message=message,
            details={"provider": provider} if provider else {},
        )


class PersistenceFailedError(LifelogException):
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "PERSISTENCE_FAILED"

    def __init__(self, message: str, table: str | None = None):
        super().__init__(
            message=message,
            details={"table": table} if table else {},
        )


class GenerationInProgressError(LifelogException):
    http_status = status.HTTP_409_CONFLICT
    code = "GENERATION_IN_PROGRESS"

    def __init__(self, kind: str, start: date, end: date):
        super().__init__(
            message=f"A {kind} summary for {start} → {end} is already being generated.",
            details={"kind": kind, "start": str(start), "end": str(end)},
        )


class SummaryNotFoundError(LifelogException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "SUMMARY_NOT_FOUND"

    def __init__(self, kind: str, start: date, end: date):
        super().__init__(
            message=f"No {kind} summary for {start} → {end}.",
            details={"kind": kind, "start": str(start), "end": str(end)},
        )


class ReminderCheckFailedError(LifelogException):
    """Raised inside one reminder kind's evaluation. Never reaches HTTP clients."""
    code = "REMINDER_CHECK_FAILED"

    def __init__(self, kind: str, cause: BaseException):
        super().__init__(
            message=f"Reminder check for {kind} failed: {cause}",
            details={"kind": kind},
        )


class MissingUserError(LifelogException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "MISSING_USER"

    def __init__(self):
        super().__init__(message="X-User-Id header is required.")


class TaskNotFoundError(LifelogException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: int):
        super().__init__(
            message=f"Task {task_id} not found.",
            details={"id": task_id},
        )


class DiaryNotFoundError(LifelogException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "DIARY_NOT_FOUND"

    def __init__(self, day: date):
        super().__init__(
            message=f"No diary for {day}.",
            details={"day": str(day)},
        )


class QuestionNotFoundError(LifelogException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "QUESTION_NOT_FOUND"

    def __init__(self, day: date):
        super().__init__(
            message=f"No reflection question is defined for {day}.",
            details={"day": str(day)},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def lifelog_exception_handler(request: Request, exc: LifelogException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
