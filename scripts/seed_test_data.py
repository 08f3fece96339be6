"""
Seed local data for drift watch testing.

Connects a Figma token for an organization and registers a watch whose
baseline is a primary button. Running a drift check afterwards against a
real Figma file shows every property that differs from that baseline.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import driftwatch.models  # noqa: E402,F401
from driftwatch.core.constants import IntegrationType  # noqa: E402
from driftwatch.database import Base, engine, get_db_context  # noqa: E402
from driftwatch.database.repositories import (  # noqa: E402
    IntegrationRepository,
    WatchRepository,
)
from driftwatch.models.drift_watch import DriftWatch  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

SAMPLE_SNAPSHOT = {
    "fills": [{"type": "SOLID", "color": "#3366ff", "opacity": 1}],
    "cornerRadius": 4,
    "layout": {
        "mode": "HORIZONTAL",
        "primarySizing": "AUTO",
        "counterSizing": "AUTO",
        "padding": {"left": 16, "right": 16, "top": 8, "bottom": 8},
        "itemSpacing": 8,
    },
    "size": {"width": 120, "height": 40},
}


def seed(
    organization_id: str,
    figma_token: str,
    file_id: str,
    component_id: str,
    webhook_url: str = None,
) -> str:
    """
    Store the credential and register one watch.

    Returns:
        The new watch id
    """
    with get_db_context() as db:
        IntegrationRepository(db).upsert(
            organization_id, IntegrationType.FIGMA.value, figma_token
        )
        logger.info(f"Connected Figma for {organization_id}")

        watch = WatchRepository(db).create(DriftWatch(
            organization_id=organization_id,
            figma_file_id=file_id,
            figma_file_name="Design System",
            figma_component_id=component_id,
            figma_component_name="Button/Primary",
            github_repo_name="acme/web",
            github_file_path="src/components/Button.tsx",
            snapshot=SAMPLE_SNAPSHOT,
            slack_webhook_url=webhook_url,
        ))
        return watch.watch_id


def main():
    parser = argparse.ArgumentParser(description="Seed drift watch test data")
    parser.add_argument("--org", default="org_test_001", help="Organization id")
    parser.add_argument("--token", required=True, help="Figma personal access token")
    parser.add_argument("--file", required=True, dest="file_id", help="Figma file key")
    parser.add_argument("--component", required=True, help="Figma node id, e.g. 1:23")
    parser.add_argument("--webhook", help="Slack incoming webhook URL")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create tables from the ORM models instead of running migrations",
    )
    args = parser.parse_args()

    if args.create_tables:
        Base.metadata.create_all(bind=engine)
        logger.info("Created tables")

    watch_id = seed(args.org, args.token, args.file_id, args.component, args.webhook)

    print(f"\n✅ Registered drift watch {watch_id}")
    print(f"   Run: python scripts/run_drift_check.py --watch {watch_id} --verbose\n")


if __name__ == "__main__":
    main()
