"""Time helpers shared by scoring and stats.

All timestamps are stored as UTC. "Today" is a calendar day in the configured
timezone, so the day boundary is converted back to UTC before it reaches a query.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Current time as a tz-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops tzinfo) and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@lru_cache
def get_zone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name (cached)."""
    return ZoneInfo(name)


def local_day(dt: datetime, tz: str = "UTC") -> date:
    """Calendar day of ``dt`` in timezone ``tz``."""
    return as_utc(dt).astimezone(get_zone(tz)).date()


def start_of_local_day(dt: datetime, tz: str = "UTC") -> datetime:
    """Midnight of the local day containing ``dt``, expressed in UTC."""
    zone = get_zone(tz)
    midnight = datetime.combine(local_day(dt, tz), time.min, tzinfo=zone)
    return midnight.astimezone(timezone.utc)
