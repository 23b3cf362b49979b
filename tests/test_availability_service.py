"""
Tests for slot generation and conflict detection.
"""

from datetime import date, datetime, time, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.models import BookingHold, BookingStatus, Staff, StaffAvailability
from app.services.exceptions import (
    AvailabilityLookupError,
    BookingValidationError,
    ServiceNotFoundError,
    StaffIneligibleError,
    StaffNotFoundError,
)
from helpers import WORK_DAY, local


def test_full_day_yields_29_hourly_slots(availability_service, salon):
    slots = availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 15)

    assert len(slots) == 29
    assert slots[0] == local(WORK_DAY, 9, 0)
    assert slots[-1] == local(WORK_DAY, 16, 0)
    assert local(WORK_DAY, 16, 15) not in slots
    assert slots == sorted(slots)
    assert all(slot.tzinfo is not None for slot in slots)


def test_lunch_block_removes_overlapping_starts(availability_service, salon, add_block):
    add_block(salon.maya, time(12, 0), time(13, 0))

    slots = availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 15)

    assert len(slots) == 22
    assert local(WORK_DAY, 11, 0) in slots
    assert local(WORK_DAY, 13, 0) in slots
    for minute in range(15, 120, 15):
        assert local(WORK_DAY, 11, 0) + timedelta(minutes=minute) not in slots


def test_confirmed_booking_is_subtracted(availability_service, salon, add_booking):
    add_booking(salon.maya, salon.haircut, local(WORK_DAY, 10, 0))

    slots = availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 15)

    # 09:00 ends exactly when the booking starts; 11:00 starts exactly when it ends
    assert local(WORK_DAY, 9, 0) in slots
    assert local(WORK_DAY, 11, 0) in slots
    assert local(WORK_DAY, 10, 0) not in slots
    assert local(WORK_DAY, 9, 15) not in slots
    assert local(WORK_DAY, 10, 45) not in slots
    assert len(slots) == 22


def test_cancelled_booking_does_not_block(availability_service, salon, add_booking):
    add_booking(salon.maya, salon.haircut, local(WORK_DAY, 10, 0), status=BookingStatus.CANCELLED.value)

    slots = availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 15)

    assert local(WORK_DAY, 10, 0) in slots
    assert len(slots) == 29


def test_other_staff_booking_does_not_block(availability_service, salon, add_booking):
    add_booking(salon.leo, salon.haircut, local(WORK_DAY, 10, 0))

    slots = availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 15)

    assert len(slots) == 29


def test_live_hold_blocks_and_expired_hold_does_not(db, clock, availability_service, salon):
    db.add(BookingHold(
        session_id="someone-else",
        staff_id=salon.maya,
        service_id=salon.haircut,
        slot_datetime=local(WORK_DAY, 14, 0),
        slot_end_datetime=local(WORK_DAY, 15, 0),
        duration_minutes=60,
        expires_at=clock() + timedelta(minutes=5),
    ))
    db.commit()

    slots = availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 15)
    assert local(WORK_DAY, 14, 0) not in slots

    clock.advance(minutes=5)

    slots = availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 15)
    assert local(WORK_DAY, 14, 0) in slots
    assert len(slots) == 29


def test_longer_service_and_coarser_granularity(availability_service, salon):
    slots = availability_service.get_available_slots(salon.maya, WORK_DAY, salon.color, 30)

    # 120 minutes: 09:00 .. 15:00 every 30 minutes
    assert len(slots) == 13
    assert slots[-1] == local(WORK_DAY, 15, 0)


def test_day_without_rule_is_empty(availability_service, salon):
    assert availability_service.get_available_slots(salon.maya, WORK_DAY + timedelta(days=1), salon.haircut, 15) == []


def test_time_off_override_wins_over_weekly_rule(db, availability_service, salon):
    db.add(StaffAvailability(
        staff_id=salon.maya,
        day_of_week=WORK_DAY.weekday(),
        start_time=time(0, 0),
        end_time=time(0, 0),
        override_date=WORK_DAY,
        reason="Vacation",
    ))
    db.commit()

    assert availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 15) == []


def test_special_hours_override(db, availability_service, salon):
    db.add(StaffAvailability(
        staff_id=salon.maya,
        day_of_week=WORK_DAY.weekday(),
        start_time=time(12, 0),
        end_time=time(14, 0),
        override_date=WORK_DAY,
    ))
    db.commit()

    slots = availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 30)

    assert slots == [local(WORK_DAY, 12, 0), local(WORK_DAY, 12, 30), local(WORK_DAY, 13, 0)]


def test_past_slots_are_not_offered(clock, availability_service, salon):
    clock.set(local(WORK_DAY, 10, 5))

    slots = availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 15)

    assert slots[0] == local(WORK_DAY, 10, 15)


def test_spring_forward_day_skips_missing_hour(db, clock, availability_service, salon):
    dst_day = date(2030, 3, 10)
    clock.set(datetime(2030, 3, 1, tzinfo=timezone.utc))
    db.add(StaffAvailability(
        staff_id=salon.maya,
        day_of_week=dst_day.weekday(),
        start_time=time(1, 0),
        end_time=time(4, 0),
    ))
    db.commit()

    slots = availability_service.get_available_slots(salon.maya, dst_day, salon.haircut, 30)

    assert slots == [
        datetime(2030, 3, 10, 9, 0, tzinfo=timezone.utc),
        datetime(2030, 3, 10, 9, 30, tzinfo=timezone.utc),
        datetime(2030, 3, 10, 10, 0, tzinfo=timezone.utc),
    ]


def test_unknown_staff_service_and_ineligible(availability_service, salon):
    import uuid

    with pytest.raises(StaffNotFoundError):
        availability_service.get_available_slots(uuid.uuid4(), WORK_DAY, salon.haircut, 15)
    with pytest.raises(ServiceNotFoundError):
        availability_service.get_available_slots(salon.maya, WORK_DAY, uuid.uuid4(), 15)
    with pytest.raises(StaffIneligibleError):
        availability_service.get_available_slots(salon.leo, WORK_DAY, salon.color, 15)


@pytest.mark.parametrize("granularity", [0, -15])
def test_invalid_granularity(availability_service, salon, granularity):
    with pytest.raises(BookingValidationError):
        availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, granularity)


def test_default_granularity_comes_from_settings(availability_service, salon):
    slots = availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut)

    assert len(slots) == 29


def test_inactive_staff_has_no_slots(db, availability_service, salon):
    db.get(Staff, salon.maya).is_active = False
    db.commit()

    assert availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 15) == []


def test_store_failure_fails_closed(availability_service, salon):
    with patch(
        "app.services.availability.availability_service.BookingRepository.find_overlapping",
        side_effect=OperationalError("SELECT", {}, Exception("database is down")),
    ):
        with pytest.raises(AvailabilityLookupError):
            availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 15)


def test_find_conflict_reports_local_time_range(availability_service, salon, add_booking):
    add_booking(salon.maya, salon.haircut, local(WORK_DAY, 10, 0))

    reason = availability_service.find_conflict(salon.maya, local(WORK_DAY, 10, 30), local(WORK_DAY, 11, 30))

    assert reason == "Conflicts with existing booking (10:00 AM - 11:00 AM)"
    assert availability_service.find_conflict(salon.maya, local(WORK_DAY, 11, 0), local(WORK_DAY, 12, 0)) is None


def test_is_staff_available_checks_hours_and_blocks(availability_service, salon, add_block):
    add_block(salon.maya, time(12, 0), time(13, 0))

    assert availability_service.is_staff_available(salon.maya, local(WORK_DAY, 9, 0), 60)
    assert not availability_service.is_staff_available(salon.maya, local(WORK_DAY, 8, 30), 60)
    assert not availability_service.is_staff_available(salon.maya, local(WORK_DAY, 16, 30), 60)
    assert not availability_service.is_staff_available(salon.maya, local(WORK_DAY, 11, 30), 60)
    assert not availability_service.is_staff_available(salon.maya, local(WORK_DAY + timedelta(days=1), 10, 0), 60)


def test_available_staff_for_service(availability_service, salon, add_booking):
    add_booking(salon.maya, salon.haircut, local(WORK_DAY, 10, 0))

    at_ten = availability_service.get_available_staff_for_service(salon.haircut, local(WORK_DAY, 10, 0))
    at_noon = availability_service.get_available_staff_for_service(salon.haircut, local(WORK_DAY, 12, 0))

    assert [member.id for member in at_ten] == [salon.leo]
    assert {member.id for member in at_noon} == {salon.maya, salon.leo}
