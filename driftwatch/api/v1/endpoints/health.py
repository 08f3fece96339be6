"""Health check endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from driftwatch.core.config import get_settings
from driftwatch.core.logging_config import get_logger
from driftwatch.database import get_db
from driftwatch.models.schemas import HealthCheckResponse
from driftwatch.utils.datetime_helpers import now_utc

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
def health_check() -> HealthCheckResponse:
    """
    Health check endpoint.

    Returns:
        Health status of the service
    """
    settings = get_settings()
    return HealthCheckResponse(
        status="healthy",
        service=settings.app_name,
        version=settings.app_version,
        timestamp=now_utc(),
    )


@router.get("/health/ready", response_model=HealthCheckResponse)
def readiness_check(db: Session = Depends(get_db)) -> HealthCheckResponse:
    """
    Readiness check for container orchestration.

    Returns:
        Readiness status; 503 when the database is unreachable
    """
    settings = get_settings()
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        )
    return HealthCheckResponse(
        status="ready",
        service=settings.app_name,
        version=settings.app_version,
        timestamp=now_utc(),
    )
