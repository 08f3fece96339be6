"""Repository for drift alert data access."""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from driftwatch.core.constants import Severity
from driftwatch.core.logging_config import get_logger
from driftwatch.models.drift import PropertyChange
from driftwatch.models.drift_alert import DriftAlert
from driftwatch.utils.datetime_helpers import now_utc

logger = get_logger(__name__)


class AlertRepository:
    """Data access layer for DriftAlert entities."""

    def __init__(self, db: Session):
        """
        Initialize repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def create(
        self,
        watch_id: str,
        organization_id: str,
        changes: List[PropertyChange],
        severity: Severity,
    ) -> DriftAlert:
        """
        Persist a detected drift.

        Args:
            watch_id: Watch that produced the changes
            organization_id: Owner of the watch
            changes: Ordered property changes
            severity: Maximum severity across changes

        Returns:
            Created alert
        """
        alert = DriftAlert(
            watch_id=watch_id,
            organization_id=organization_id,
            changes=[c.to_dict() for c in changes],
            change_count=len(changes),
            severity=severity.value,
            acknowledged=False,
            slack_sent=False,
            detected_at=now_utc(),
        )
        self.db.add(alert)
        self.db.commit()
        self.db.refresh(alert)
        logger.info(
            f"Created drift alert {alert.alert_id} for watch {watch_id}: "
            f"{len(changes)} change(s), severity {severity.value}"
        )
        return alert

    def get(self, alert_id: str) -> Optional[DriftAlert]:
        """Get an alert by id."""
        return self.db.get(DriftAlert, alert_id)

    def list_for_watch(
        self, watch_id: str, limit: int = 50, offset: int = 0
    ) -> List[DriftAlert]:
        """Get a watch's alerts, newest first."""
        stmt = (
            select(DriftAlert)
            .where(DriftAlert.watch_id == watch_id)
            .order_by(desc(DriftAlert.detected_at))
            .limit(limit)
            .offset(offset)
        )
        return list(self.db.scalars(stmt))

    def count_for_watch(self, watch_id: str) -> int:
        stmt = select(func.count(DriftAlert.alert_id)).where(DriftAlert.watch_id == watch_id)
        return self.db.scalar(stmt) or 0

    def mark_delivery(
        self,
        alert_id: str,
        delivered: bool,
        sent_at: Optional[datetime] = None,
        error: Optional[str] = None,
    ) -> Optional[DriftAlert]:
        """
        Record the outcome of a notification attempt.

        This is the only update the reconciliation path makes to an alert.
        """
        alert = self.get(alert_id)
        if alert is None:
            return None

        alert.slack_sent = delivered
        alert.slack_sent_at = sent_at if delivered else None
        alert.delivery_error = None if delivered else error

        self.db.commit()
        self.db.refresh(alert)
        return alert

    def acknowledge(self, alert_id: str, acknowledged_at: datetime) -> Optional[DriftAlert]:
        """Mark an alert as acknowledged by a person."""
        alert = self.get(alert_id)
        if alert is None:
            return None

        if not alert.acknowledged:
            alert.acknowledged = True
            alert.acknowledged_at = acknowledged_at
            self.db.commit()
            self.db.refresh(alert)
            logger.info(f"Acknowledged drift alert {alert_id}")
        return alert

    def stats_for_organization(
        self, organization_id: str, recent_since: datetime
    ) -> Dict[str, object]:
        """
        Count an organization's alerts.

        Args:
            organization_id: Tenant to summarize
            recent_since: Alerts detected at or after this time count as recent

        Returns:
            {"total", "unacknowledged", "recent", "by_severity": {severity: count}}
        """
        by_severity_stmt = (
            select(DriftAlert.severity, func.count(DriftAlert.alert_id))
            .where(DriftAlert.organization_id == organization_id)
            .group_by(DriftAlert.severity)
        )
        by_severity = {severity: count for severity, count in self.db.execute(by_severity_stmt)}

        unacknowledged_stmt = select(func.count(DriftAlert.alert_id)).where(
            DriftAlert.organization_id == organization_id,
            DriftAlert.acknowledged.is_(False),
        )
        recent_stmt = select(func.count(DriftAlert.alert_id)).where(
            DriftAlert.organization_id == organization_id,
            DriftAlert.detected_at >= recent_since,
        )

        return {
            "total": sum(by_severity.values()),
            "unacknowledged": self.db.scalar(unacknowledged_stmt) or 0,
            "recent": self.db.scalar(recent_stmt) or 0,
            "by_severity": by_severity,
        }
