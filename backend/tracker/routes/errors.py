"""
Translation of tracker exceptions into HTTP responses.

    InvalidArgumentError  -> 400
    NotFoundError         -> 404
    ScheduleConflictError -> 406
    anything else         -> 500
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from tracker.exceptions import (
    InvalidArgumentError,
    NotFoundError,
    ScheduleConflictError,
    TrackerError,
)
from tracker.logging_config import get_logger
from tracker.schemas import ErrorResponse

logger = get_logger(__name__)

STATUS_CODES = {
    InvalidArgumentError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ScheduleConflictError: status.HTTP_406_NOT_ACCEPTABLE,
}


def status_code_for(exc: TrackerError) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in STATUS_CODES:
            return STATUS_CODES[exc_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def tracker_exception_handler(request: Request, exc: TrackerError) -> JSONResponse:
    """Handle TrackerError and return a structured response."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.debug(f"{request.method} {request.url.path} -> {status_code} {exc.error_code}")

    body = ErrorResponse(error=exc.error_code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(TrackerError, tracker_exception_handler)
