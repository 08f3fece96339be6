"""
Celery Application Configuration.

Redis serves as broker and result backend. Celery beat can replace the
in-process APScheduler as the periodic trigger (set SCHEDULER_ENABLED=false
on the API and run beat instead); both call the same run_all_watches().

Usage:
    # Worker for the drift_checks queue
    celery -A driftwatch.workers.celery_app worker -Q drift_checks --loglevel=info

    # Periodic runs via beat
    celery -A driftwatch.workers.celery_app beat --loglevel=info
"""

import logging
import time
from typing import Dict

from celery import Celery
from celery.schedules import schedule
from celery.signals import task_failure, task_postrun, task_prerun

from driftwatch.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

RUN_ALL_TASK = "driftwatch.workers.drift_worker.run_all_watches_task"
RUN_INTERVAL_SECONDS = settings.drift_check_interval_minutes * 60

celery_app = Celery(
    "design_drift_watch",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["driftwatch.workers.drift_worker"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_track_started=True,
    task_time_limit=settings.celery_task_time_limit,
    task_soft_time_limit=settings.celery_task_soft_time_limit,
    worker_prefetch_multiplier=settings.celery_worker_prefetch_multiplier,
    worker_max_tasks_per_child=settings.celery_worker_max_tasks_per_child,
    worker_hijack_root_logger=False,
    result_expires=3600,
    task_routes={"driftwatch.workers.drift_worker.*": {"queue": "drift_checks"}},
    beat_schedule={
        "check-all-drift-watches": {
            "task": RUN_ALL_TASK,
            "schedule": schedule(run_every=RUN_INTERVAL_SECONDS),
            # A run that missed its slot is dropped; the next one covers it
            "options": {"expires": RUN_INTERVAL_SECONDS},
        },
    },
    timezone="UTC",
    enable_utc=True,
)

# Task start times by task id, for duration logging
_started: Dict[str, float] = {}


@task_prerun.connect
def task_prerun_handler(task_id=None, task=None, **extra):
    _started[task_id] = time.monotonic()
    logger.info(f"Task {task.name}[{task_id}] starting")


@task_postrun.connect
def task_postrun_handler(task_id=None, task=None, state=None, **extra):
    started = _started.pop(task_id, None)
    elapsed = f" in {time.monotonic() - started:.2f}s" if started is not None else ""
    logger.info(f"Task {task.name}[{task_id}] finished with state {state}{elapsed}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, einfo=None, **extra):
    logger.error(
        f"Task {sender.name}[{task_id}] failed: {exception!r}",
        exc_info=einfo.exc_info if einfo is not None else None,
    )
