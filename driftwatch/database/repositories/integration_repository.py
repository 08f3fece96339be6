"""Repository for integration credential lookups."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from driftwatch.core.logging_config import get_logger
from driftwatch.models.integration import Integration

logger = get_logger(__name__)


class IntegrationRepository:
    """Read access to an organization's integration credentials."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, organization_id: str, integration_type: str) -> Optional[Integration]:
        stmt = select(Integration).where(
            Integration.organization_id == organization_id,
            Integration.integration_type == integration_type,
        )
        return self.db.scalars(stmt).first()

    def get_access_token(self, organization_id: str, integration_type: str) -> Optional[str]:
        """
        Get the access token for an organization's integration.

        Returns:
            The token, or None if the integration is not connected
        """
        integration = self.get(organization_id, integration_type)
        if integration is None or not integration.access_token:
            logger.debug(f"No {integration_type} credential for org {organization_id}")
            return None
        return integration.access_token

    def upsert(self, organization_id: str, integration_type: str, access_token: str) -> Integration:
        """Store a credential; used by seeding scripts and tests."""
        integration = self.get(organization_id, integration_type)
        if integration is None:
            integration = Integration(
                organization_id=organization_id,
                integration_type=integration_type,
            )
            self.db.add(integration)
        integration.access_token = access_token
        self.db.commit()
        self.db.refresh(integration)
        return integration
