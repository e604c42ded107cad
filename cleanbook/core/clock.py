"""
Time helpers.

All timestamps are stored as naive UTC (``DateTime`` without timezone), so
anything arriving with tzinfo is normalised before it reaches the database.
"""
from datetime import datetime, timezone
from typing import Optional

import pytz


def utc_now() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a datetime to naive UTC.

    Naive input is assumed to already be UTC and is returned unchanged.
    """
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(pytz.UTC).replace(tzinfo=None)
