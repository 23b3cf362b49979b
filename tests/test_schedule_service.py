"""
Tests for schedule edits and the booking-integrity guard.
"""

import uuid
from datetime import timedelta

import pytest
from pydantic import ValidationError

from app.models import DayOfWeek, StaffAvailability
from app.schemas.schedule import (
    DateOverrideRequest,
    DayScheduleInput,
    ScheduleBlockInput,
    TimeOffRequest,
    WeeklyScheduleRequest,
    WorkingHoursInput,
)
from app.services.exceptions import ScheduleConflictError, StaffNotFoundError
from helpers import WORK_DAY, local


def tuesday(**kwargs) -> DayScheduleInput:
    values = {"day_of_week": "TUESDAY", "start_time": "09:00", "end_time": "17:00"}
    values.update(kwargs)
    return DayScheduleInput(**values)


class TestScheduleSchemas:
    """Payload validation happens before any store access."""

    def test_day_name_or_number(self):
        assert tuesday().day_of_week == DayOfWeek.TUESDAY
        assert DayScheduleInput(day_of_week=1).day_of_week == DayOfWeek.TUESDAY
        assert DayScheduleInput(day_of_week="wednesday").day_of_week == DayOfWeek.WEDNESDAY

    def test_bad_day(self):
        with pytest.raises(ValidationError):
            DayScheduleInput(day_of_week="Funday")

    def test_end_before_start(self):
        with pytest.raises(ValidationError):
            tuesday(start_time="17:00", end_time="09:00")

    def test_bad_time_format(self):
        with pytest.raises(ValidationError):
            tuesday(start_time="9am")

    def test_block_outside_hours(self):
        with pytest.raises(ValidationError):
            tuesday(blocks=[{"block_start_time": "08:00", "block_end_time": "09:30", "title": "Early"}])

    def test_block_end_before_start(self):
        with pytest.raises(ValidationError):
            ScheduleBlockInput(block_start_time="13:00", block_end_time="12:00", title="Lunch")

    def test_duplicate_days(self):
        with pytest.raises(ValidationError):
            WeeklyScheduleRequest(days=[tuesday(), tuesday()])

    def test_time_off_range(self):
        with pytest.raises(ValidationError):
            TimeOffRequest(start_date=WORK_DAY, end_date=WORK_DAY - timedelta(days=1))


class TestWeeklySchedule:
    """Weekly rules replace per day and never orphan bookings silently."""

    def test_get_schedule_shape(self, schedule_service, salon):
        schedule = schedule_service.get_schedule(salon.maya)

        assert schedule["timezone"] == "America/Los_Angeles"
        assert schedule["weekly"]["TUESDAY"]["start_time"] == "09:00"
        assert schedule["weekly"]["MONDAY"] == {"is_available": False}
        assert schedule["overrides"] == []

    def test_replace_day_with_blocks(self, db, schedule_service, availability_service, salon):
        lunch = {"block_start_time": "12:00", "block_end_time": "13:00", "block_type": "lunch", "title": "Lunch"}

        schedule = schedule_service.set_weekly_schedule(salon.maya, [tuesday(end_time="15:00", blocks=[lunch])])

        assert schedule["weekly"]["TUESDAY"]["end_time"] == "15:00"
        assert schedule["weekly"]["TUESDAY"]["blocks"][0]["title"] == "Lunch"
        slots = availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 60)
        assert slots == [local(WORK_DAY, 9), local(WORK_DAY, 10), local(WORK_DAY, 11),
                         local(WORK_DAY, 13), local(WORK_DAY, 14)]

    def test_replacing_again_replaces_blocks(self, db, schedule_service, salon):
        lunch = {"block_start_time": "12:00", "block_end_time": "13:00", "title": "Lunch"}
        schedule_service.set_weekly_schedule(salon.maya, [tuesday(blocks=[lunch])])

        schedule = schedule_service.set_weekly_schedule(salon.maya, [tuesday()])

        assert schedule["weekly"]["TUESDAY"]["blocks"] == []

    def test_toggle_day_off_removes_rule(self, db, schedule_service, salon):
        schedule_service.set_weekly_schedule(salon.maya, [tuesday(is_available=False)])

        rules = db.query(StaffAvailability).filter(StaffAvailability.staff_id == salon.maya).all()
        assert rules == []

    def test_conflicting_change_rejected(self, db, schedule_service, booking_service, salon, customer):
        booking_service.create_booking(salon.maya, salon.haircut, local(WORK_DAY, 15), customer)

        with pytest.raises(ScheduleConflictError) as exc_info:
            schedule_service.set_weekly_schedule(salon.maya, [tuesday(end_time="14:00")])

        assert len(exc_info.value.conflicts) == 1
        assert "3:00 PM" in exc_info.value.conflicts[0]
        assert "Haircut" in exc_info.value.conflicts[0]
        # Nothing applied
        assert schedule_service.get_schedule(salon.maya)["weekly"]["TUESDAY"]["end_time"] == "17:00"

    def test_new_block_over_booking_rejected(self, schedule_service, booking_service, salon, customer):
        booking_service.create_booking(salon.maya, salon.haircut, local(WORK_DAY, 12), customer)
        lunch = {"block_start_time": "12:30", "block_end_time": "13:30", "title": "Lunch"}

        with pytest.raises(ScheduleConflictError):
            schedule_service.set_weekly_schedule(salon.maya, [tuesday(blocks=[lunch])])

    def test_force_applies_anyway(self, schedule_service, booking_service, salon, customer):
        booking_service.create_booking(salon.maya, salon.haircut, local(WORK_DAY, 15), customer)

        schedule = schedule_service.set_weekly_schedule(salon.maya, [tuesday(end_time="14:00")], force=True)

        assert schedule["weekly"]["TUESDAY"]["end_time"] == "14:00"
        assert len(schedule["upcoming_bookings"]) == 1

    def test_booking_on_override_date_ignores_weekly_change(self, schedule_service, booking_service, salon,
                                                            customer):
        schedule_service.set_date_override(
            salon.maya, WORK_DAY, WorkingHoursInput(start_time="13:00", end_time="18:00")
        )
        booking_service.create_booking(salon.maya, salon.haircut, local(WORK_DAY, 17), customer)

        schedule_service.set_weekly_schedule(salon.maya, [tuesday(is_available=False)])

    def test_default_schedule(self, db, schedule_service, salon):
        schedule = schedule_service.create_default_schedule(salon.leo)

        working = [day for day, entry in schedule["weekly"].items() if entry["is_available"]]
        assert working == ["TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY"]
        assert schedule["weekly"]["SATURDAY"]["end_time"] == "18:00"

    def test_unknown_staff(self, schedule_service, salon):
        with pytest.raises(StaffNotFoundError):
            schedule_service.set_weekly_schedule(uuid.uuid4(), [tuesday()])


class TestOverridesAndTimeOff:
    """Date-specific edits."""

    def test_time_off_blocks_availability(self, schedule_service, availability_service, salon):
        schedule = schedule_service.set_time_off(salon.maya, WORK_DAY, WORK_DAY + timedelta(days=2), reason="Vacation")

        assert len(schedule["overrides"]) == 3
        assert all(entry["is_available"] is False for entry in schedule["overrides"])
        assert availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 15) == []

    def test_time_off_over_booking_rejected(self, schedule_service, booking_service, salon, customer):
        booking_service.create_booking(salon.maya, salon.haircut, local(WORK_DAY, 10), customer)

        with pytest.raises(ScheduleConflictError):
            schedule_service.set_time_off(salon.maya, WORK_DAY, WORK_DAY)

    def test_override_replaces_previous_override(self, schedule_service, salon):
        schedule_service.set_date_override(salon.maya, WORK_DAY, WorkingHoursInput(start_time="10:00", end_time="12:00"))
        schedule = schedule_service.set_date_override(
            salon.maya, WORK_DAY, WorkingHoursInput(start_time="11:00", end_time="15:00"), reason="Late start"
        )

        assert len(schedule["overrides"]) == 1
        assert schedule["overrides"][0]["start_time"] == "11:00"
        assert schedule["overrides"][0]["reason"] == "Late start"

    def test_override_shrinking_hours_conflicts(self, schedule_service, booking_service, salon, customer):
        booking_service.create_booking(salon.maya, salon.haircut, local(WORK_DAY, 9), customer)

        with pytest.raises(ScheduleConflictError):
            schedule_service.set_date_override(
                salon.maya, WORK_DAY, DateOverrideRequest(start_time="10:00", end_time="17:00")
            )

    def test_clear_override_restores_weekly_rule(self, schedule_service, availability_service, salon):
        schedule_service.set_time_off(salon.maya, WORK_DAY, WORK_DAY)

        schedule = schedule_service.clear_date_override(salon.maya, WORK_DAY)

        assert schedule["overrides"] == []
        assert len(availability_service.get_available_slots(salon.maya, WORK_DAY, salon.haircut, 15)) == 29

    def test_clear_override_checks_bookings_against_weekly_rule(self, schedule_service, booking_service, salon,
                                                                customer):
        schedule_service.set_date_override(salon.maya, WORK_DAY, WorkingHoursInput(start_time="13:00", end_time="20:00"))
        booking_service.create_booking(salon.maya, salon.haircut, local(WORK_DAY, 18), customer)

        with pytest.raises(ScheduleConflictError):
            schedule_service.clear_date_override(salon.maya, WORK_DAY)
