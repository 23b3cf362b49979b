"""Shared test constants and time helpers."""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

TZ = ZoneInfo("America/Los_Angeles")

# Tuesday; the default clock sits the day before
WORK_DAY = date(2030, 6, 4)


def local(on_date: date, hour: int, minute: int = 0) -> datetime:
    """Business-local wall clock time as an aware UTC datetime"""
    return datetime.combine(on_date, time(hour, minute)).replace(tzinfo=TZ).astimezone(timezone.utc)


class MutableClock:
    """Callable time source that tests can move forward"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)

    def set(self, now: datetime) -> None:
        self.now = now
