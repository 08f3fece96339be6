"""
Exception hierarchy for the drift watch service.

Source errors are raised by the design-source adapter and are all caught at
the single-watch boundary in the reconciler. Notification errors belong to
the alert side channel and never reach reconciliation accounting.
"""

from datetime import datetime
from typing import Optional


class DriftWatchError(Exception):
    """Base exception for drift watch errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class SourceError(DriftWatchError):
    """Base class for failures fetching from the design-source system."""


class SourceNotFoundError(SourceError):
    """The remote file or component no longer exists."""

    def __init__(self, file_id: str, component_id: Optional[str] = None):
        target = f"{file_id}/{component_id}" if component_id else file_id
        super().__init__(f"Figma component not found: {target}", status_code=404)
        self.file_id = file_id
        self.component_id = component_id


class SourceUnauthorizedError(SourceError):
    """The organization's credential was rejected by the design source."""

    def __init__(self, detail: str = "Figma access token rejected"):
        super().__init__(detail, status_code=401)


class UpstreamFailureError(SourceError):
    """Network failure, timeout or unexpected status from the design source."""

    def __init__(self, detail: str, upstream_status: Optional[int] = None):
        super().__init__(detail, status_code=502)
        self.upstream_status = upstream_status


class RateLimitedError(SourceError):
    """The integration budget for this organization is spent until reset_at."""

    def __init__(self, integration: str, organization_id: str, reset_at: datetime):
        super().__init__(
            f"Rate limit exceeded for {integration} (org {organization_id}); "
            f"resets at {reset_at.isoformat()}",
            status_code=429,
        )
        self.integration = integration
        self.organization_id = organization_id
        self.reset_at = reset_at


class IntegrationNotConnectedError(DriftWatchError):
    """The organization has no credential for a required integration."""

    def __init__(self, integration: str):
        super().__init__(
            f"{integration.capitalize()} integration not connected",
            status_code=400,
        )
        self.integration = integration


class NotificationDeliveryError(DriftWatchError):
    """An alert notification could not be delivered."""

    def __init__(self, detail: str, upstream_status: Optional[int] = None):
        super().__init__(detail, status_code=502)
        self.upstream_status = upstream_status


class WatchNotFoundError(DriftWatchError):
    """Raised when a drift watch is not found."""

    def __init__(self, watch_id: str):
        super().__init__(f"Drift watch {watch_id} not found", status_code=404)


class AlertNotFoundError(DriftWatchError):
    """Raised when a drift alert is not found."""

    def __init__(self, alert_id: str):
        super().__init__(f"Drift alert {alert_id} not found", status_code=404)
