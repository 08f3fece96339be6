"""
API Error Handlers

Maps the service's exception hierarchy onto JSON error responses.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from driftwatch.core.config import get_settings
from driftwatch.core.exceptions import DriftWatchError, RateLimitedError
from driftwatch.models.schemas import ErrorResponse

logger = logging.getLogger(__name__)


async def drift_watch_error_handler(request: Request, exc: DriftWatchError) -> JSONResponse:
    """Handle DriftWatchError and subclasses."""
    details = None
    if isinstance(exc, RateLimitedError):
        details = {"reset_at": exc.reset_at.isoformat()}

    logger.warning(
        f"{type(exc).__name__}: {exc.message}",
        extra={"path": request.url.path, "status_code": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            message=exc.message,
            details=details,
        ).model_dump(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle validation errors."""
    logger.warning(f"Validation error: {exc.errors()}", extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            message="Invalid request data",
            details={"errors": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                for err in exc.errors()
            ]},
        ).model_dump(),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors."""
    logger.error(f"Unexpected error: {exc}", exc_info=True, extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="InternalServerError",
            message="An unexpected error occurred",
            details={"error": str(exc)} if get_settings().debug else None,
        ).model_dump(),
    )
