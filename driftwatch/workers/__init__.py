"""
Workers package for background task processing.

This package contains:
- Celery application configuration
- Drift reconciliation tasks
"""

from driftwatch.workers.celery_app import celery_app

__all__ = [
    "celery_app",
]
