"""API v1 package."""

from driftwatch.api.v1.router import api_router

__all__ = ["api_router"]
