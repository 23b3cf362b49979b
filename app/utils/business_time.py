# app/utils/business_time.py
"""
Business-timezone helpers.

Schedules are stored as local wall-clock times; bookings and holds are
stored as UTC instants. Local times are converted to UTC exactly once,
right after slot candidates and schedule intervals are built, and UTC
instants are only converted back to local time for display.
"""
import re
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from app.config.settings import get_settings

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


@lru_cache()
def get_business_tz(name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(name or get_settings().BUSINESS_TIMEZONE)


def parse_hhmm(value: str) -> time:
    """Parse a "HH:MM" wall-clock string"""
    match = TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid time format (HH:MM): {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def ensure_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_to_utc(local_date: date, local_time: time, tz: ZoneInfo) -> Optional[datetime]:
    """
    Convert a local wall-clock time on a date to a UTC instant.

    Returns None for wall-clock times that do not exist on that date
    (the hour skipped by a spring-forward DST transition). Ambiguous
    times in the repeated fall-back hour resolve to the first occurrence.
    """
    local_dt = datetime.combine(local_date, local_time).replace(tzinfo=tz, fold=0)
    utc_dt = local_dt.astimezone(timezone.utc)

    round_trip = utc_dt.astimezone(tz)
    if round_trip.replace(tzinfo=None) != local_dt.replace(tzinfo=None):
        return None

    return utc_dt


def local_day_bounds(local_date: date, tz: ZoneInfo) -> Tuple[datetime, datetime]:
    """UTC instants of local midnight to next local midnight"""
    start = datetime.combine(local_date, time.min).replace(tzinfo=tz).astimezone(timezone.utc)
    end = datetime.combine(local_date + timedelta(days=1), time.min).replace(tzinfo=tz).astimezone(timezone.utc)
    return start, end


def to_local(value: datetime, tz: ZoneInfo) -> datetime:
    return ensure_utc(value).astimezone(tz)


def format_local_time(value: datetime, tz: ZoneInfo) -> str:
    """Display format used in conflict reasons, e.g. "9:00 AM" """
    local = to_local(value, tz)
    return local.strftime("%I:%M %p").lstrip("0")


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open interval overlap: [a0, a1) and [b0, b1) overlap iff a0 < b1 and b0 < a1"""
    return start_a < end_b and start_b < end_a
