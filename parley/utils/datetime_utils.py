"""
Timezone-aware datetime utilities.

SQLite hands back naive datetimes, so everything read from the database goes
through ``ensure_utc`` before it reaches a model.
"""

from datetime import datetime, timezone
from typing import Optional

# UTC timezone constant
UTC = timezone.utc


def now_utc() -> datetime:
    """Current UTC time with tzinfo set."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware and in UTC.

    Args:
        dt: datetime to convert (can be None, naive, or timezone-aware)

    Returns:
        Optional[datetime]: UTC timezone-aware datetime, or None if input is None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        # Stored values are always UTC
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
