"""Initial schema - Create drift watch tables

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17

Creates the following tables:
- integrations: Per-organization integration credentials (read-only here)
- drift_watches: Registered Figma component / code location pairs
- drift_alerts: Detected drift between a watch's baseline and Figma
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all drift watch tables."""

    # ═══════════════════════════════════════════════════════════════════════
    # Integrations Table
    # ═══════════════════════════════════════════════════════════════════════
    op.execute("""
        CREATE TABLE IF NOT EXISTS integrations (
            integration_id    VARCHAR(36) PRIMARY KEY,
            organization_id   VARCHAR(255) NOT NULL,
            integration_type  VARCHAR(50) NOT NULL,
            access_token      TEXT,
            connected_at      TIMESTAMPTZ NOT NULL DEFAULT now(),

            CONSTRAINT uq_integrations_org_type UNIQUE (organization_id, integration_type)
        )
    """)

    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_integrations_organization_id
            ON integrations(organization_id)
    """)

    # ═══════════════════════════════════════════════════════════════════════
    # Drift Watches Table
    # ═══════════════════════════════════════════════════════════════════════
    op.execute("""
        CREATE TABLE IF NOT EXISTS drift_watches (
            watch_id              VARCHAR(36) PRIMARY KEY,
            organization_id       VARCHAR(255) NOT NULL,
            figma_file_id         VARCHAR(255) NOT NULL,
            figma_file_name       TEXT NOT NULL DEFAULT '',
            figma_component_id    VARCHAR(255) NOT NULL,
            figma_component_name  TEXT NOT NULL DEFAULT '',
            github_repo_id        VARCHAR(255) NOT NULL DEFAULT '',
            github_repo_name      TEXT NOT NULL DEFAULT '',
            github_file_path      TEXT NOT NULL DEFAULT '',
            github_branch         VARCHAR(255) NOT NULL DEFAULT 'main',
            snapshot              JSON NOT NULL,
            snapshot_version      INTEGER NOT NULL DEFAULT 1,
            status                VARCHAR(20) NOT NULL DEFAULT 'active',
            is_active             BOOLEAN NOT NULL DEFAULT TRUE,
            last_error            TEXT,
            last_checked_at       TIMESTAMPTZ,
            last_healthy_at       TIMESTAMPTZ,
            alert_on_drift        BOOLEAN NOT NULL DEFAULT TRUE,
            slack_webhook_url     TEXT,
            created_at            TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at            TIMESTAMPTZ NOT NULL DEFAULT now(),

            CONSTRAINT valid_watch_status CHECK (
                status IN ('active', 'healthy', 'drift_detected', 'error', 'inactive')
            )
        )
    """)

    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_drift_watches_organization_id
            ON drift_watches(organization_id)
    """)

    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_drift_watches_active
            ON drift_watches(is_active)
    """)

    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_drift_watches_org_status
            ON drift_watches(organization_id, status)
    """)

    # ═══════════════════════════════════════════════════════════════════════
    # Drift Alerts Table
    # ═══════════════════════════════════════════════════════════════════════
    op.execute("""
        CREATE TABLE IF NOT EXISTS drift_alerts (
            alert_id          VARCHAR(36) PRIMARY KEY,
            watch_id          VARCHAR(36) NOT NULL
                REFERENCES drift_watches(watch_id) ON DELETE CASCADE,
            organization_id   VARCHAR(255) NOT NULL,
            changes           JSON NOT NULL,
            change_count      INTEGER NOT NULL,
            severity          VARCHAR(10) NOT NULL,
            acknowledged      BOOLEAN NOT NULL DEFAULT FALSE,
            acknowledged_at   TIMESTAMPTZ,
            slack_sent        BOOLEAN NOT NULL DEFAULT FALSE,
            slack_sent_at     TIMESTAMPTZ,
            delivery_error    TEXT,
            detected_at       TIMESTAMPTZ NOT NULL DEFAULT now(),

            CONSTRAINT valid_alert_severity CHECK (severity IN ('low', 'medium', 'high'))
        )
    """)

    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_drift_alerts_watch_id
            ON drift_alerts(watch_id)
    """)

    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_drift_alerts_organization_id
            ON drift_alerts(organization_id)
    """)

    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_drift_alerts_watch_detected
            ON drift_alerts(watch_id, detected_at)
    """)

    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_drift_alerts_org_severity
            ON drift_alerts(organization_id, severity)
    """)


def downgrade() -> None:
    """Drop all drift watch tables."""
    op.execute("DROP TABLE IF EXISTS drift_alerts CASCADE")
    op.execute("DROP TABLE IF EXISTS drift_watches CASCADE")
    op.execute("DROP TABLE IF EXISTS integrations CASCADE")
