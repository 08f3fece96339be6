"""API v1 router aggregation."""

from fastapi import APIRouter

from driftwatch.api.v1.endpoints import alerts, cron, health, watches

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(health.router, prefix="", tags=["Health"])
api_router.include_router(cron.router, prefix="", tags=["Cron"])
api_router.include_router(watches.router, prefix="", tags=["Watches"])
api_router.include_router(alerts.router, prefix="", tags=["Alerts"])
