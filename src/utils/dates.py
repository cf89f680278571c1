"""Calendar helpers for daily reporting and settlement."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple


def day_bounds(day: Optional[date] = None) -> Tuple[datetime, datetime]:
    """
    UTC start (inclusive) and end (exclusive) of a calendar day.

    Args:
        day: The day; today (UTC) when omitted

    Returns:
        (start, end) aware datetimes
    """
    if day is None:
        day = datetime.now(timezone.utc).date()
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)
