"""
Periodic drift reconciliation.

run_all_watches() is the trigger used by every entry point: the in-process
APScheduler job below, the /cron/check-drift endpoint, the Celery task and
the manual script. Watches are reconciled concurrently, at most
fan_out_width at a time, and a failing watch never aborts the others.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from driftwatch.core.config import Settings, get_settings
from driftwatch.core.constants import ReconcileOutcome
from driftwatch.core.reconciler import Reconciler, open_reconciler

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Counts for one reconciliation run."""

    successful: int = 0
    failed: int = 0
    skipped: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def build_scheduler(settings: Optional[Settings] = None) -> AsyncIOScheduler:
    """
    Build and configure the APScheduler instance.

    Returns:
        AsyncIOScheduler: Configured scheduler ready to start
    """
    settings = settings or get_settings()
    scheduler = AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        func=check_all_watches,
        trigger=IntervalTrigger(minutes=settings.drift_check_interval_minutes),
        id="check_all_watches",
        name="Check All Drift Watches",
        replace_existing=True,
        max_instances=1,  # a slow run is never overlapped by the next tick
    )

    logger.info(
        f"APScheduler configured: check_all_watches every "
        f"{settings.drift_check_interval_minutes}min"
    )
    return scheduler


async def check_all_watches() -> None:
    """Scheduled job: reconcile every active watch."""
    try:
        logger.info("Starting scheduled drift check")
        summary = await run_all_watches()
        logger.info(f"Scheduled drift check finished: {summary.to_dict()}")
    except Exception as e:
        logger.error(f"Scheduled drift check failed: {e}", exc_info=True)


async def run_all_watches(
    reconciler: Optional[Reconciler] = None,
    settings: Optional[Settings] = None,
) -> RunSummary:
    """
    Reconcile every active watch once.

    Args:
        reconciler: Reconciler to use (a fully wired one is built if omitted)
        settings: Configuration settings (default: get_settings())

    Returns:
        RunSummary with successful, failed, skipped and total counts
    """
    settings = settings or get_settings()
    if reconciler is None:
        async with open_reconciler(settings) as built:
            return await _run(built, settings)
    return await _run(reconciler, settings)


async def _run(reconciler: Reconciler, settings: Settings) -> RunSummary:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + settings.run_deadline_seconds

    watches = await reconciler.store.load_active_watches()
    logger.info(
        f"Checking {len(watches)} drift watch(es), "
        f"{settings.fan_out_width} at a time"
    )

    semaphore = asyncio.Semaphore(settings.fan_out_width)

    async def check_one(watch_id: str):
        async with semaphore:
            return await reconciler.reconcile(watch_id, deadline=deadline)

    results = await asyncio.gather(
        *(check_one(watch.watch_id) for watch in watches),
        return_exceptions=True,
    )

    summary = RunSummary(total=len(watches))
    for watch, result in zip(watches, results):
        if isinstance(result, BaseException):
            summary.failed += 1
            logger.error(
                f"Drift check for watch {watch.watch_id} raised: {result!r}",
                exc_info=result,
            )
        elif result.outcome in (ReconcileOutcome.HEALTHY, ReconcileOutcome.DRIFT_DETECTED):
            summary.successful += 1
        elif result.outcome == ReconcileOutcome.ERROR:
            summary.failed += 1
        else:
            summary.skipped += 1

    logger.info(
        f"Drift check complete: {summary.successful} successful, "
        f"{summary.failed} failed, {summary.skipped} skipped of {summary.total}"
    )
    return summary
