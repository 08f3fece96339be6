"""
Drift Worker - Celery tasks for drift reconciliation.

Each task runs the async engine to completion on a fresh event loop, so the
Redis and HTTP clients it builds never outlive the task.

Usage:
    from driftwatch.workers.drift_worker import check_watch_task
    check_watch_task.delay(watch_id="uuid-here")
"""

import asyncio
import logging
from typing import Any, Dict

from celery.exceptions import SoftTimeLimitExceeded

from driftwatch.core.reconciler import open_reconciler
from driftwatch.scheduler.cron import run_all_watches
from driftwatch.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name="driftwatch.workers.drift_worker.run_all_watches_task",
    acks_late=True,
)
def run_all_watches_task() -> Dict[str, int]:
    """
    Reconcile every active watch once.

    Not retried: the next scheduled run picks up anything missed.

    Returns:
        {"successful": int, "failed": int, "skipped": int, "total": int}
    """
    try:
        summary = asyncio.run(run_all_watches())
    except SoftTimeLimitExceeded:
        logger.error("Drift check run exceeded the soft time limit")
        raise
    return summary.to_dict()


async def _check_watch(watch_id: str) -> Dict[str, Any]:
    async with open_reconciler() as reconciler:
        result = await reconciler.reconcile(watch_id)
    return {
        "watch_id": result.watch_id,
        "outcome": result.outcome.value,
        "change_count": len(result.changes),
        "alert_id": result.alert_id,
        "error": result.error,
    }


@celery_app.task(
    name="driftwatch.workers.drift_worker.check_watch_task",
    acks_late=True,
    reject_on_worker_lost=True,
)
def check_watch_task(watch_id: str) -> Dict[str, Any]:
    """
    Reconcile a single watch on demand.

    Args:
        watch_id: Watch to check

    Returns:
        Dictionary with the outcome, change count, alert id and error
    """
    logger.info(f"Starting on-demand drift check for watch {watch_id}")
    result = asyncio.run(_check_watch(watch_id))
    logger.info(f"On-demand drift check for watch {watch_id}: {result['outcome']}")
    return result
