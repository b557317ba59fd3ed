"""
Barbershop Scheduling API.

Routers:
- public:        availability and booking for the booking wizard (rate limited)
- appointments:  barbershop dashboard operations (Bearer token)
- health:        readiness probe
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from api.errors import scheduling_exception_handler
from api.middleware.rate_limiting import RateLimitMiddleware
from api.routes import appointments, health, public
from scheduling.errors import BookingErrorCode, SchedulingError
from shared.config import get_settings
from shared.logging_config import configure_logging
from shared.redis_client import close_redis_client
from shared.startup_validator import StartupValidationError, validate_startup_config

configure_logging()
logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(
    title="Barbershop Scheduling API",
    description="Availability search and conflict-free slot allocation for barbershops",
    version="1.0.0",
)

# Middleware added last runs first: CORS answers preflight requests before the rate limiter counts them
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(public.router)
app.include_router(appointments.router)
app.include_router(health.router)

app.add_exception_handler(SchedulingError, scheduling_exception_handler)


def validation_error_response(request: Request, errors: list[Any]) -> JSONResponse:
    logger.warning(f"Validation error on {request.url.path}", extra={"request_path": request.url.path})
    return JSONResponse(
        status_code=422,
        content={
            "error_code": BookingErrorCode.VALIDATION_ERROR.value,
            "error_message": "Validation error",
            "details": {"errors": errors},
        },
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed path, query or body values rejected by FastAPI before the route runs."""
    return validation_error_response(request, jsonable_encoder(exc.errors()))


@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Pydantic errors raised while building responses or domain objects."""
    return validation_error_response(
        request, exc.errors(include_url=False, include_context=False)
    )


@app.on_event("startup")
async def check_configuration() -> None:
    """Refuse to start with scheduling rules that would corrupt availability."""
    try:
        validate_startup_config()
    except StartupValidationError as e:
        logger.critical(f"API startup blocked: {e}")
        raise
    logger.info("Scheduling API started")


@app.on_event("shutdown")
async def release_connections() -> None:
    await close_redis_client()
