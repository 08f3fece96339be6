"""Drift alert database model."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from driftwatch.database.base import Base
from driftwatch.models.drift import PropertyChange


class DriftAlert(Base):
    """
    One detected divergence between a watch's baseline and the remote state.

    Created once per reconciliation cycle that finds changes. Afterwards only
    the delivery bookkeeping and the external acknowledgement are updated.
    """

    __tablename__ = "drift_alerts"

    alert_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    watch_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("drift_watches.watch_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    organization_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Ordered list of {property, old_value, new_value, severity}
    changes: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False)
    change_count: Mapped[int] = mapped_column(Integer, nullable=False)
    severity: Mapped[str] = mapped_column(String(10), nullable=False)

    acknowledged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    acknowledged_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Delivery bookkeeping
    slack_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    slack_sent_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    delivery_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    detected_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    watch: Mapped["DriftWatch"] = relationship(back_populates="alerts")  # noqa: F821

    __table_args__ = (
        Index("ix_drift_alerts_watch_detected", "watch_id", "detected_at"),
        Index("ix_drift_alerts_org_severity", "organization_id", "severity"),
    )

    @property
    def property_changes(self) -> List[PropertyChange]:
        return [PropertyChange.from_dict(c) for c in self.changes]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "alert_id": self.alert_id,
            "watch_id": self.watch_id,
            "organization_id": self.organization_id,
            "changes": self.changes,
            "change_count": self.change_count,
            "severity": self.severity,
            "acknowledged": self.acknowledged,
            "acknowledged_at": self.acknowledged_at,
            "slack_sent": self.slack_sent,
            "slack_sent_at": self.slack_sent_at,
            "delivery_error": self.delivery_error,
            "detected_at": self.detected_at,
        }

    def __repr__(self) -> str:
        return (
            f"<DriftAlert(id={self.alert_id}, watch={self.watch_id}, "
            f"severity={self.severity}, changes={self.change_count})>"
        )
