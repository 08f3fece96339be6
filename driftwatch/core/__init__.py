"""Core module initialization."""

from driftwatch.core.config import Settings, get_settings
from driftwatch.core.constants import (
    IntegrationType,
    ReconcileOutcome,
    Severity,
    WatchStatus,
)
from driftwatch.core.logging_config import get_logger, setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "IntegrationType",
    "ReconcileOutcome",
    "Severity",
    "WatchStatus",
    "setup_logging",
    "get_logger",
]
