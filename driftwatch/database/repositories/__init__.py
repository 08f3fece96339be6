"""Repository package initialization."""

from driftwatch.database.repositories.alert_repository import AlertRepository
from driftwatch.database.repositories.integration_repository import IntegrationRepository
from driftwatch.database.repositories.watch_repository import WatchRepository

__all__ = ["AlertRepository", "IntegrationRepository", "WatchRepository"]
