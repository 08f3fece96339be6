"""
Configuration module for the Design Drift Watch service.
Values come from the environment or a .env file.
"""

from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ─── Application Settings ────────────────────────────────────────────
    app_name: str = "Design Drift Watch"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    app_url: str = Field(
        default="http://localhost:3000",
        description="Public product URL used for deep links in alerts",
    )

    # ─── API Settings ────────────────────────────────────────────────────
    api_v1_prefix: str = "/api/v1"
    host: str = "0.0.0.0"
    port: int = 8001
    allowed_origins: List[str] = ["http://localhost:3000"]
    cron_secret: Optional[str] = Field(
        default=None,
        description="Shared secret the periodic job runner presents as a Bearer token",
    )

    # ─── Database Settings ───────────────────────────────────────────────
    database_url: str = "postgresql+psycopg://localhost/driftwatch"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_echo: bool = False

    # ─── Redis Settings ──────────────────────────────────────────────────
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for rate-limit counters",
    )
    redis_socket_timeout: float = Field(
        default=2.0,
        description="Socket timeout in seconds for rate-limit calls",
    )

    # ─── Celery Settings ─────────────────────────────────────────────────
    celery_broker_url: str = "redis://localhost:6379/1"
    celery_result_backend: str = "redis://localhost:6379/2"
    celery_task_time_limit: int = Field(
        default=600,
        description="Hard time limit for tasks in seconds",
    )
    celery_task_soft_time_limit: int = Field(
        default=540,
        description="Soft time limit for tasks in seconds",
    )
    celery_worker_prefetch_multiplier: int = 1
    celery_worker_max_tasks_per_child: int = 100

    # ─── Scheduler Settings ──────────────────────────────────────────────
    scheduler_enabled: bool = Field(
        default=True,
        description="Start the in-process APScheduler alongside the API",
    )
    drift_check_interval_minutes: int = Field(
        default=15,
        description="Interval in minutes between full drift reconciliation runs",
    )
    fan_out_width: int = Field(
        default=5,
        ge=1,
        description="Maximum number of watches reconciled concurrently",
    )
    run_deadline_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Overall deadline for one reconciliation run",
    )

    # ─── Figma Settings ──────────────────────────────────────────────────
    figma_api_base: str = "https://api.figma.com/v1"
    figma_request_timeout_seconds: float = 30.0
    figma_request_cost: int = Field(
        default=1,
        ge=1,
        description="Rate-limit credits charged for one file-nodes request",
    )

    # ─── Alert Settings ──────────────────────────────────────────────────
    slack_request_timeout_seconds: float = 10.0
    max_alert_changes: int = Field(
        default=10,
        ge=1,
        description="Maximum number of changed properties listed in a notification",
    )

    # ─── Rate Limit Settings ─────────────────────────────────────────────
    rate_limit_overrides: Dict[str, Dict[str, int]] = Field(
        default_factory=dict,
        description=(
            "Per-integration overrides, e.g. "
            '{"figma": {"max_credits": 3000, "window_seconds": 60}}'
        ),
    )
    rate_limit_fail_open_remaining: int = 1000

    # ─── Helper Methods ──────────────────────────────────────────────────

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once.

    Returns:
        Settings: Application configuration object
    """
    return Settings()
