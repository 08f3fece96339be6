"""Pydantic schemas for API request/response validation."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from driftwatch.core.constants import Severity
from driftwatch.utils.datetime_helpers import make_timezone_aware, now_utc


# ============= Request Schemas =============


class WatchCreateRequest(BaseModel):
    """Register a (Figma component, code location) pair for drift checks."""

    organization_id: str = Field(..., min_length=1, description="Owning organization")
    figma_file_id: str = Field(..., min_length=1, description="Figma file key")
    figma_file_name: str = Field(default="", description="Display name of the file")
    figma_component_id: str = Field(..., min_length=1, description="Figma node id")
    figma_component_name: str = Field(default="", description="Display name of the component")
    github_repo_id: str = Field(default="", description="Repository identifier")
    github_repo_name: str = Field(default="", description="Repository full name")
    github_file_path: str = Field(default="", description="Path of the implementing file")
    github_branch: str = Field(default="main", description="Branch of the implementing file")
    alert_on_drift: bool = Field(default=True, description="Send a notification on drift")
    slack_webhook_url: Optional[str] = Field(
        default=None, description="Slack incoming webhook for alerts"
    )
    snapshot: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Baseline properties; captured from Figma when omitted",
    )

    @field_validator("slack_webhook_url")
    @classmethod
    def validate_webhook(cls, v: Optional[str]) -> Optional[str]:
        """Ensure the webhook is an https URL."""
        if v and not v.startswith("https://"):
            raise ValueError("Slack webhook URL must use https")
        return v or None


class WatchUpdateRequest(BaseModel):
    """Partial update of a watch; omitted fields are left unchanged."""

    is_active: Optional[bool] = None
    alert_on_drift: Optional[bool] = None
    slack_webhook_url: Optional[str] = None
    figma_file_name: Optional[str] = None
    figma_component_name: Optional[str] = None
    github_repo_name: Optional[str] = None
    github_file_path: Optional[str] = None
    github_branch: Optional[str] = None

    @field_validator("slack_webhook_url")
    @classmethod
    def validate_webhook(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.startswith("https://"):
            raise ValueError("Slack webhook URL must use https")
        return v


# ============= Response Schemas =============


class PropertyChangeResponse(BaseModel):
    """One changed property."""

    property: str
    old_value: Any = None
    new_value: Any = None
    severity: Severity


class AlertResponse(BaseModel):
    """Response schema for a drift alert."""

    alert_id: str
    watch_id: str
    organization_id: str
    changes: List[PropertyChangeResponse]
    change_count: int
    severity: Severity
    acknowledged: bool
    acknowledged_at: Optional[datetime] = None
    slack_sent: bool
    slack_sent_at: Optional[datetime] = None
    delivery_error: Optional[str] = None
    detected_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("acknowledged_at", "slack_sent_at", "detected_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return make_timezone_aware(v)


class AlertListResponse(BaseModel):
    """A page of alerts for one watch."""

    watch_id: str
    alerts: List[AlertResponse]
    total: int


class WatchResponse(BaseModel):
    """Response schema for a drift watch."""

    watch_id: str
    organization_id: str
    figma_file_id: str
    figma_file_name: str
    figma_component_id: str
    figma_component_name: str
    github_repo_id: str
    github_repo_name: str
    github_file_path: str
    github_branch: str
    snapshot: Dict[str, Any]
    status: str
    is_active: bool
    last_error: Optional[str] = None
    last_checked_at: Optional[datetime] = None
    last_healthy_at: Optional[datetime] = None
    alert_on_drift: bool
    slack_webhook_url: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("last_checked_at", "last_healthy_at", "created_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Datetimes read back from SQLite are naive; they are stored as UTC."""
        return make_timezone_aware(v)


class WatchDetailResponse(WatchResponse):
    """A watch with its most recent alerts."""

    recent_alerts: List[AlertResponse] = Field(default_factory=list)


class WatchListResponse(BaseModel):
    """Watches of one organization."""

    organization_id: str
    watches: List[WatchResponse]
    count: int


class CheckEnqueuedResponse(BaseModel):
    """An on-demand check was handed to the worker queue."""

    watch_id: str
    task_id: str
    status: str = Field(default="queued")


class RunSummaryResponse(BaseModel):
    """Counts for one full reconciliation run."""

    success: bool = True
    successful: int
    failed: int
    skipped: int
    total: int
    timestamp: datetime = Field(default_factory=now_utc)


class DriftStatsResponse(BaseModel):
    """Drift statistics for an organization."""

    organization_id: str
    total_alerts: int
    unacknowledged_alerts: int
    recent_alerts: int = Field(..., description="Alerts detected in the last 7 days")
    alerts_by_severity: Dict[str, int]
    watches_by_status: Dict[str, int]


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    service: str = Field(default="design_drift_watch")
    version: str
    timestamp: datetime = Field(default_factory=now_utc)


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: Optional[dict] = Field(default=None, description="Additional details")
