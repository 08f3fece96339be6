"""
Scheduler package for periodic drift reconciliation.

The APScheduler job reconciles every active watch on a fixed interval.
"""

from driftwatch.scheduler.cron import RunSummary, build_scheduler, run_all_watches

__all__ = ["RunSummary", "build_scheduler", "run_all_watches"]
