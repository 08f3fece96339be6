"""Repository for drift watch data access."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from driftwatch.core.constants import WatchStatus
from driftwatch.core.logging_config import get_logger
from driftwatch.models.drift import NORMALIZATION_VERSION
from driftwatch.models.drift_watch import DriftWatch

logger = get_logger(__name__)

# Fields an API client may change on an existing watch.
MUTABLE_FIELDS = frozenset({
    "figma_file_name",
    "figma_component_name",
    "github_repo_name",
    "github_file_path",
    "github_branch",
    "alert_on_drift",
    "slack_webhook_url",
})


class WatchRepository:
    """Data access layer for DriftWatch entities."""

    def __init__(self, db: Session):
        """
        Initialize repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def create(self, watch: DriftWatch) -> DriftWatch:
        """
        Register a new watch.

        Args:
            watch: DriftWatch instance to create

        Returns:
            Created watch
        """
        self.db.add(watch)
        self.db.commit()
        self.db.refresh(watch)
        logger.info(
            f"Registered drift watch {watch.watch_id} for "
            f"{watch.figma_file_id}/{watch.figma_component_id}"
        )
        return watch

    def get(self, watch_id: str) -> Optional[DriftWatch]:
        """Get a watch by id."""
        return self.db.get(DriftWatch, watch_id)

    def list_active(self) -> List[DriftWatch]:
        """
        Get every watch the scheduler should consider.

        Returns:
            Watches with is_active set, oldest check first
        """
        stmt = (
            select(DriftWatch)
            .where(DriftWatch.is_active.is_(True))
            .order_by(DriftWatch.last_checked_at.asc().nulls_first(), DriftWatch.watch_id)
        )
        return list(self.db.scalars(stmt))

    def list_for_organization(
        self,
        organization_id: str,
        is_active: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[DriftWatch]:
        """List an organization's watches, newest first."""
        stmt = select(DriftWatch).where(DriftWatch.organization_id == organization_id)
        if is_active is not None:
            stmt = stmt.where(DriftWatch.is_active.is_(is_active))
        stmt = stmt.order_by(DriftWatch.created_at.desc()).limit(limit).offset(offset)
        return list(self.db.scalars(stmt))

    def count_by_status(self, organization_id: str) -> Dict[str, int]:
        """Count an organization's watches per status."""
        stmt = (
            select(DriftWatch.status, func.count(DriftWatch.watch_id))
            .where(DriftWatch.organization_id == organization_id)
            .group_by(DriftWatch.status)
        )
        return {status: count for status, count in self.db.execute(stmt)}

    def record_check(
        self,
        watch_id: str,
        status: WatchStatus,
        checked_at: datetime,
        healthy_at: Optional[datetime] = None,
        last_error: Optional[str] = None,
    ) -> Optional[DriftWatch]:
        """
        Write the outcome of one reconciliation cycle.

        Updates status and timestamps in a single commit. The snapshot is
        never touched here.

        Args:
            watch_id: Watch to update
            status: New status
            checked_at: Time of the check
            healthy_at: Set only when the check found no drift
            last_error: Failure reason for status=error, None otherwise

        Returns:
            The updated watch, or None if it no longer exists
        """
        watch = self.get(watch_id)
        if watch is None:
            logger.warning(f"Watch {watch_id} disappeared before its check was recorded")
            return None

        watch.status = status.value
        watch.last_checked_at = checked_at
        watch.last_error = last_error
        if healthy_at is not None:
            watch.last_healthy_at = healthy_at

        self.db.commit()
        self.db.refresh(watch)
        return watch

    def replace_snapshot(
        self,
        watch_id: str,
        snapshot: Dict[str, Any],
        captured_at: datetime,
    ) -> Optional[DriftWatch]:
        """
        Accept a new baseline for a watch.

        Used only by explicit re-baselining; marks the watch healthy.
        """
        watch = self.get(watch_id)
        if watch is None:
            return None

        watch.snapshot = snapshot
        watch.snapshot_version = NORMALIZATION_VERSION
        watch.status = WatchStatus.HEALTHY.value
        watch.last_checked_at = captured_at
        watch.last_healthy_at = captured_at
        watch.last_error = None

        self.db.commit()
        self.db.refresh(watch)
        logger.info(f"Re-baselined drift watch {watch_id}")
        return watch

    def update(self, watch_id: str, fields: Dict[str, Any]) -> Optional[DriftWatch]:
        """
        Update editable watch fields.

        Toggling is_active also moves status: deactivation sets inactive,
        reactivation sets active until the next check.
        """
        watch = self.get(watch_id)
        if watch is None:
            return None

        for name, value in fields.items():
            if name in MUTABLE_FIELDS:
                setattr(watch, name, value)

        if "is_active" in fields and fields["is_active"] is not None:
            is_active = bool(fields["is_active"])
            if is_active != watch.is_active:
                watch.is_active = is_active
                watch.status = (
                    WatchStatus.ACTIVE.value if is_active else WatchStatus.INACTIVE.value
                )

        self.db.commit()
        self.db.refresh(watch)
        return watch

    def delete(self, watch_id: str) -> bool:
        """Delete a watch and its alerts."""
        watch = self.get(watch_id)
        if watch is None:
            return False
        self.db.delete(watch)
        self.db.commit()
        logger.info(f"Deleted drift watch {watch_id}")
        return True
