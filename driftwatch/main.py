"""Main FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from driftwatch.api.errors import (
    drift_watch_error_handler,
    general_exception_handler,
    validation_exception_handler,
)
from driftwatch.api.v1 import api_router
from driftwatch.core.config import get_settings
from driftwatch.core.exceptions import DriftWatchError
from driftwatch.core.logging_config import get_logger, setup_logging
from driftwatch.database.session import engine
from driftwatch.scheduler import build_scheduler

# Setup logging
setup_logging()
logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Args:
        app: FastAPI application instance
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = build_scheduler(settings)
        scheduler.start()
        logger.info("Drift check scheduler started")

    yield

    logger.info(f"Shutting down {settings.app_name}")
    if scheduler is not None:
        scheduler.shutdown(wait=False)
    engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Design Drift Watch - Design-to-Code Drift Reconciliation

    Periodically re-fetches tracked Figma components, compares them with the
    accepted baseline and raises alerts when the design has drifted away
    from the code that implements it.

    **Key Features:**
    - Scheduled reconciliation of every active watch
    - Per-organization rate limiting of Figma calls (Redis)
    - Severity-classified drift alerts
    - Slack notifications with deep links
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Exception Handlers
app.add_exception_handler(DriftWatchError, drift_watch_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Include API routers
app.include_router(api_router, prefix=settings.api_v1_prefix)


# Root endpoint
@app.get("/", tags=["Root"])
def root() -> dict:
    """Root endpoint with service information."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "/docs",
        "health": f"{settings.api_v1_prefix}/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "driftwatch.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
