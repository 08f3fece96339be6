"""Date and time utility functions."""

from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current UTC datetime
    """
    return datetime.now(timezone.utc)


def make_timezone_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Make a naive datetime timezone-aware (UTC).

    SQLite hands back naive datetimes even for timezone-aware columns.

    Args:
        dt: Datetime to convert

    Returns:
        Timezone-aware datetime, or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt
