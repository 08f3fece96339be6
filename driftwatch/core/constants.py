"""Application constants."""

from enum import Enum


class WatchStatus(str, Enum):
    """Reconciliation state of a drift watch."""

    ACTIVE = "active"  # registered, not yet checked
    HEALTHY = "healthy"
    DRIFT_DETECTED = "drift_detected"
    ERROR = "error"
    INACTIVE = "inactive"


class Severity(str, Enum):
    """Severity of a single property change or of a whole alert."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
}


class IntegrationType(str, Enum):
    """External integrations guarded by the rate limiter."""

    FIGMA = "figma"
    GITHUB = "github"
    LINEAR = "linear"
    SLACK = "slack"
    NOTION = "notion"
    ZOOM = "zoom"


class ReconcileOutcome(str, Enum):
    """Result of one reconciliation cycle for a single watch."""

    HEALTHY = "healthy"
    DRIFT_DETECTED = "drift_detected"
    ERROR = "error"
    RATE_LIMITED = "rate_limited"
    SKIPPED = "skipped"
