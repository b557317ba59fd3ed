"""HTTP mapping for scheduling error codes."""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from scheduling.errors import BookingErrorCode, SchedulingError
from scheduling.transactions import BookingResult

logger = logging.getLogger(__name__)

# Seconds a client should wait before retrying after STORE_UNAVAILABLE
STORE_RETRY_AFTER_SECONDS = 5

ERROR_STATUS: dict[BookingErrorCode, int] = {
    BookingErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    BookingErrorCode.INVALID_SLOT: status.HTTP_422_UNPROCESSABLE_ENTITY,
    BookingErrorCode.SLOT_TAKEN: status.HTTP_409_CONFLICT,
    BookingErrorCode.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    BookingErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    BookingErrorCode.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(
    error_code: BookingErrorCode,
    error_message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    headers = None
    if error_code == BookingErrorCode.STORE_UNAVAILABLE:
        headers = {"Retry-After": str(STORE_RETRY_AFTER_SECONDS)}
    return JSONResponse(
        status_code=ERROR_STATUS[error_code],
        content={
            "error_code": error_code.value,
            "error_message": error_message,
            "details": details or {},
        },
        headers=headers,
    )


def booking_failure_response(result: BookingResult) -> JSONResponse:
    return error_response(
        result.error_code or BookingErrorCode.VALIDATION_ERROR,
        result.error_message or "Booking failed",
        result.details,
    )


async def scheduling_exception_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    """Translate errors raised on read paths (availability, listing, lookups)."""
    logger.warning(
        f"{exc.code.value}: {exc.message}",
        extra={"request_path": request.url.path, "error_code": exc.code},
    )
    return error_response(exc.code, exc.message, exc.details)
