"""Manual drift check execution script."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from driftwatch.core.constants import ReconcileOutcome
from driftwatch.core.reconciler import ReconcileResult, open_reconciler
from driftwatch.scheduler.cron import run_all_watches

OUTCOME_ICONS = {
    ReconcileOutcome.HEALTHY: "✅",
    ReconcileOutcome.DRIFT_DETECTED: "⚠️ ",
    ReconcileOutcome.ERROR: "❌",
    ReconcileOutcome.RATE_LIMITED: "⏳",
    ReconcileOutcome.SKIPPED: "⏭️ ",
}


def setup_logging(verbose: bool = False, debug: bool = False):
    """Configure logging based on verbosity flags."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def print_result(result: ReconcileResult):
    """Pretty-print the outcome of one watch check."""
    print(f"  {OUTCOME_ICONS[result.outcome]} {result.watch_id}: {result.outcome.value}")
    if result.error:
        print(f"     Error: {result.error}")
    for change in result.changes:
        print(f"     - {change.property} ({change.severity.value})")
        print(f"         old: {change.old_value}")
        print(f"         new: {change.new_value}")
    if result.alert_id:
        print(f"     Alert: {result.alert_id}")
    print()


async def check_one(watch_id: str) -> ReconcileResult:
    async with open_reconciler() as reconciler:
        return await reconciler.reconcile(watch_id)


def main():
    """Run drift checks for one watch or all active watches."""
    parser = argparse.ArgumentParser(
        description="Run design drift checks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_drift_check.py
  python scripts/run_drift_check.py --watch 6f1c2d9e-...
  python scripts/run_drift_check.py --verbose
        """,
    )

    parser.add_argument(
        "--watch",
        "-w",
        dest="watch_id",
        help="Check only this watch (default: all active watches)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--debug",
        "-d",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()
    setup_logging(verbose=args.verbose, debug=args.debug)

    try:
        if args.watch_id:
            print(f"\n🔍 Checking drift watch {args.watch_id}\n")
            result = asyncio.run(check_one(args.watch_id))
            print_result(result)
            return 1 if result.outcome == ReconcileOutcome.ERROR else 0

        print("\n🔍 Checking all active drift watches\n")
        summary = asyncio.run(run_all_watches())
        print(f"  Successful: {summary.successful}")
        print(f"  Failed:     {summary.failed}")
        print(f"  Skipped:    {summary.skipped}")
        print(f"  Total:      {summary.total}\n")
        return 1 if summary.failed else 0

    except Exception as e:
        print(f"\n❌ Error during drift check: {e}\n", file=sys.stderr)
        if args.debug:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
