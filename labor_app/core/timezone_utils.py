"""
Timezone utility functions for converting UTC to Indochina Time (site local time)

Datetimes are stored as naive UTC, which is also how Motor hands them back.
"""
from datetime import datetime, timezone, timedelta
from typing import Optional

# Indochina Time, Asia/Bangkok (UTC+7)
ICT = timezone(timedelta(hours=7))


def utc_now() -> datetime:
    """Current time as naive UTC, the storage form"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert any datetime to naive UTC

    Args:
        dt: naive (assumed UTC) or aware datetime

    Returns:
        naive UTC datetime or None
    """
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def utc_to_local(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert UTC datetime to ICT

    Args:
        dt: UTC datetime (can be naive or aware)

    Returns:
        ICT datetime or None
    """
    if dt is None:
        return None

    # If naive datetime, assume it's UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(ICT)


def get_local_now() -> datetime:
    """Current time in ICT (timezone-aware)"""
    return datetime.now(ICT)


def local_today():
    return get_local_now().date()
