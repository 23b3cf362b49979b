"""
Tests for timezone conversion and interval helpers.
"""

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from app.utils.business_time import (
    ensure_utc,
    format_local_time,
    local_day_bounds,
    local_to_utc,
    overlaps,
    parse_hhmm,
)

LA = ZoneInfo("America/Los_Angeles")


def test_parse_hhmm():
    assert parse_hhmm("09:00") == time(9, 0)
    assert parse_hhmm("9:05") == time(9, 5)
    assert parse_hhmm(" 23:59 ") == time(23, 59)


@pytest.mark.parametrize("value", ["24:00", "9", "09:60", "nine", "", None])
def test_parse_hhmm_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_hhmm(value)


def test_local_to_utc_summer_and_winter_offsets():
    assert local_to_utc(date(2030, 6, 4), time(9, 0), LA) == datetime(2030, 6, 4, 16, 0, tzinfo=timezone.utc)
    assert local_to_utc(date(2030, 1, 8), time(9, 0), LA) == datetime(2030, 1, 8, 17, 0, tzinfo=timezone.utc)


def test_local_to_utc_spring_forward_gap_is_none():
    # 2030-03-10 02:00 jumps straight to 03:00
    assert local_to_utc(date(2030, 3, 10), time(2, 30), LA) is None
    assert local_to_utc(date(2030, 3, 10), time(3, 0), LA) == datetime(2030, 3, 10, 10, 0, tzinfo=timezone.utc)


def test_local_to_utc_fall_back_takes_first_occurrence():
    # 01:30 happens twice on 2030-11-03; the PDT one comes first
    assert local_to_utc(date(2030, 11, 3), time(1, 30), LA) == datetime(2030, 11, 3, 8, 30, tzinfo=timezone.utc)


def test_local_day_bounds_span_short_dst_day():
    start, end = local_day_bounds(date(2030, 3, 10), LA)
    assert start == datetime(2030, 3, 10, 8, 0, tzinfo=timezone.utc)
    assert (end - start).total_seconds() == 23 * 3600


def test_ensure_utc_treats_naive_as_utc():
    naive = datetime(2030, 6, 4, 16, 0)
    assert ensure_utc(naive) == datetime(2030, 6, 4, 16, 0, tzinfo=timezone.utc)
    aware = datetime(2030, 6, 4, 9, 0, tzinfo=LA)
    assert ensure_utc(aware) == datetime(2030, 6, 4, 16, 0, tzinfo=timezone.utc)


def test_format_local_time():
    assert format_local_time(datetime(2030, 6, 4, 17, 30, tzinfo=timezone.utc), LA) == "10:30 AM"


def test_overlaps_is_half_open():
    a = datetime(2030, 6, 4, 16, 0, tzinfo=timezone.utc)
    b = datetime(2030, 6, 4, 17, 0, tzinfo=timezone.utc)
    c = datetime(2030, 6, 4, 18, 0, tzinfo=timezone.utc)

    assert not overlaps(a, b, b, c)
    assert not overlaps(b, c, a, b)
    assert overlaps(a, c, b, c)
    assert overlaps(a, b, a, b)
