# app/core/errors.py
"""Translate booking exceptions into JSON error responses"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.services.exceptions import (
    AvailabilityLookupError,
    BookingSystemError,
    BookingValidationError,
    ConflictError,
    HoldExpiredError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

# Most specific first
STATUS_BY_ERROR = (
    (HoldExpiredError, status.HTTP_410_GONE),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (BookingValidationError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_409_CONFLICT),
    (AvailabilityLookupError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: BookingSystemError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def booking_error_handler(request: Request, exc: BookingSystemError) -> JSONResponse:
    status_code = status_for(exc)
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    if status_code >= 500:
        logger.error(f"[{correlation_id}] {exc.error_code}: {exc.message}")
    else:
        logger.info(f"[{correlation_id}] {request.method} {request.url.path} -> {status_code} {exc.error_code}")

    return JSONResponse(status_code=status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingSystemError, booking_error_handler)
