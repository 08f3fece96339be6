"""Integration credential database model."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from driftwatch.database.base import Base


class Integration(Base):
    """
    An organization's connection to an external integration.

    Rows are managed by the integration-credential service; this service only
    reads the access token.
    """

    __tablename__ = "integrations"

    integration_id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    organization_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    integration_type: Mapped[str] = mapped_column(String(50), nullable=False)
    access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    connected_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "integration_type",
            name="uq_integrations_org_type",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Integration(org={self.organization_id}, "
            f"type={self.integration_type})>"
        )
