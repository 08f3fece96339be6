"""Utilities package initialization."""

from driftwatch.utils.datetime_helpers import make_timezone_aware, now_utc

__all__ = ["now_utc", "make_timezone_aware"]
