"""Design Drift Watch - scheduled design-to-code drift reconciliation."""

__version__ = "1.0.0"
