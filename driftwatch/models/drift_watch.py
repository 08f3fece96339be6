"""Drift watch database model."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from driftwatch.core.constants import WatchStatus
from driftwatch.database.base import Base
from driftwatch.models.drift import NORMALIZATION_VERSION


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DriftWatch(Base):
    """
    A registered pairing of a Figma component and a code location.

    The snapshot column holds the last accepted baseline. The reconciliation
    loop never rewrites it; only registration and an explicit re-baseline do.
    """

    __tablename__ = "drift_watches"

    # Primary Key
    watch_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    # Tenant boundary
    organization_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Design reference
    figma_file_id: Mapped[str] = mapped_column(String(255), nullable=False)
    figma_file_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    figma_component_id: Mapped[str] = mapped_column(String(255), nullable=False)
    figma_component_name: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Code reference
    github_repo_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    github_repo_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    github_file_path: Mapped[str] = mapped_column(Text, nullable=False, default="")
    github_branch: Mapped[str] = mapped_column(String(255), nullable=False, default="main")

    # Baseline
    snapshot: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    snapshot_version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=NORMALIZATION_VERSION
    )

    # State
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=WatchStatus.ACTIVE.value,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_checked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_healthy_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Notification
    alert_on_drift: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    slack_webhook_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    alerts: Mapped[List["DriftAlert"]] = relationship(  # noqa: F821
        back_populates="watch",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_drift_watches_active", "is_active"),
        Index("ix_drift_watches_org_status", "organization_id", "status"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "watch_id": self.watch_id,
            "organization_id": self.organization_id,
            "figma_file_id": self.figma_file_id,
            "figma_file_name": self.figma_file_name,
            "figma_component_id": self.figma_component_id,
            "figma_component_name": self.figma_component_name,
            "github_repo_id": self.github_repo_id,
            "github_repo_name": self.github_repo_name,
            "github_file_path": self.github_file_path,
            "github_branch": self.github_branch,
            "snapshot": self.snapshot,
            "status": self.status,
            "is_active": self.is_active,
            "last_error": self.last_error,
            "last_checked_at": self.last_checked_at,
            "last_healthy_at": self.last_healthy_at,
            "alert_on_drift": self.alert_on_drift,
            "slack_webhook_url": self.slack_webhook_url,
        }

    def __repr__(self) -> str:
        return (
            f"<DriftWatch(id={self.watch_id}, org={self.organization_id}, "
            f"component={self.figma_component_id}, status={self.status})>"
        )
