"""
Data models for the drift watch service.
"""

from driftwatch.models.drift import (
    NORMALIZATION_VERSION,
    NormalizedProperties,
    PropertyChange,
)
from driftwatch.models.drift_alert import DriftAlert
from driftwatch.models.drift_watch import DriftWatch
from driftwatch.models.integration import Integration

__all__ = [
    "NORMALIZATION_VERSION",
    "NormalizedProperties",
    "PropertyChange",
    "DriftAlert",
    "DriftWatch",
    "Integration",
]
