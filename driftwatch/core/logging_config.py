"""Logging configuration for the application."""

import logging
import sys
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from driftwatch.core.config import get_settings

# Record attributes promoted to top-level JSON keys when passed via extra=
CONTEXT_FIELDS = ("watch_id", "organization_id", "alert_id", "path", "status_code")

NOISY_LOGGERS = ("uvicorn", "sqlalchemy", "httpx", "httpcore", "apscheduler", "celery")

_HANDLER_NAME = "driftwatch-console"


class DriftWatchJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping service metadata and drift-check context."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        settings = get_settings()
        log_record["service"] = settings.app_name
        log_record["environment"] = settings.environment
        log_record["level"] = record.levelname
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_record[name] = value


def setup_logging() -> None:
    """
    Configure the root logger.

    JSON lines in production, human-readable lines elsewhere. Calling it
    again replaces the handler instead of stacking another one.
    """
    settings = get_settings()

    if settings.is_production:
        formatter: logging.Formatter = DriftWatchJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            timestamp=True,
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(settings.log_level)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger (typically get_logger(__name__))."""
    return logging.getLogger(name)
