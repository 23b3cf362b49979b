# app/services/schedule/schedule_service.py
"""
Staff schedule management.

Weekly rules, date overrides and time off. Every edit first computes the
future bookings that would end up outside the new availability and refuses
to apply unless forced, so a schedule change never silently orphans a
confirmed appointment.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.models.availability import MIDNIGHT, DayOfWeek, ScheduleBlock, StaffAvailability
from app.models.booking import Booking
from app.repositories.booking_repository import BookingRepository
from app.repositories.catalog_repository import CatalogRepository
from app.repositories.schedule_repository import ScheduleRepository
from app.schemas.schedule import DayScheduleInput, ScheduleBlockInput, WorkingHoursInput
from app.services.exceptions import BookingValidationError, ScheduleConflictError, StaffNotFoundError
from app.utils.business_time import (
    format_hhmm,
    get_business_tz,
    local_to_utc,
    overlaps,
    parse_hhmm,
    to_local,
    utc_now,
)

logger = logging.getLogger(__name__)

DEFAULT_WORKING_DAYS = (
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
)


@dataclass
class DayPlan:
    """Proposed availability for one local date; start None means not working"""
    start: Optional[time] = None
    end: Optional[time] = None
    blocks: List[Tuple[time, time, str]] = field(default_factory=list)

    @property
    def is_working(self) -> bool:
        return self.start is not None

    @classmethod
    def from_rule(cls, availability: Optional[StaffAvailability]) -> "DayPlan":
        if not availability or availability.is_time_off:
            return cls()
        return cls(
            start=availability.start_time,
            end=availability.end_time,
            blocks=[(b.block_start_time, b.block_end_time, b.title) for b in availability.blocks],
        )

    @classmethod
    def from_input(cls, hours: WorkingHoursInput) -> "DayPlan":
        return cls(
            start=parse_hhmm(hours.start_time),
            end=parse_hhmm(hours.end_time),
            blocks=[
                (parse_hhmm(b.block_start_time), parse_hhmm(b.block_end_time), b.title)
                for b in hours.blocks
            ],
        )


class ScheduleService:
    """Service for staff weekly schedules, overrides and time off"""

    def __init__(
            self,
            db: Session,
            timezone_name: Optional[str] = None,
            now_fn: Callable[[], datetime] = utc_now,
            lookahead_days: Optional[int] = None
    ):
        self.db = db
        self.tz = get_business_tz(timezone_name)
        self.now_fn = now_fn
        self.lookahead_days = lookahead_days or get_settings().SCHEDULE_CONFLICT_LOOKAHEAD_DAYS

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_schedule(self, staff_id: UUID) -> Dict:
        staff = CatalogRepository.get_staff(self.db, staff_id)
        if not staff:
            raise StaffNotFoundError()

        weekly = {day.name: {"is_available": False} for day in DayOfWeek}
        overrides = []
        for availability in ScheduleRepository.list_for_staff(self.db, staff_id):
            entry = self._serialize(availability)
            if availability.is_override:
                overrides.append(entry)
            else:
                weekly[DayOfWeek(availability.day_of_week).name] = entry

        now = self.now_fn()
        upcoming = BookingRepository.list_upcoming_for_staff(
            self.db, staff_id, now, now + timedelta(days=self.lookahead_days)
        )

        return {
            "staff_id": str(staff_id),
            "staff_name": staff.name,
            "timezone": self.tz.key,
            "weekly": weekly,
            "overrides": overrides,
            "upcoming_bookings": [booking.to_dict() for booking in upcoming],
        }

    @staticmethod
    def _serialize(availability: StaffAvailability) -> Dict:
        return {
            "id": str(availability.id),
            "is_available": not availability.is_time_off,
            "day_of_week": DayOfWeek(availability.day_of_week).name,
            "override_date": availability.override_date.isoformat() if availability.override_date else None,
            "start_time": format_hhmm(availability.start_time),
            "end_time": format_hhmm(availability.end_time),
            "reason": availability.reason,
            "blocks": [
                {
                    "id": str(block.id),
                    "block_start_time": format_hhmm(block.block_start_time),
                    "block_end_time": format_hhmm(block.block_end_time),
                    "block_type": block.block_type,
                    "title": block.title,
                    "is_recurring": block.is_recurring,
                }
                for block in availability.blocks
            ],
        }

    # ------------------------------------------------------------------
    # Booking integrity guard
    # ------------------------------------------------------------------

    def _booking_fits(self, booking: Booking, local_date: date, plan: DayPlan) -> bool:
        if not plan.is_working:
            return False

        window_start = local_to_utc(local_date, plan.start, self.tz)
        window_end = local_to_utc(local_date, plan.end, self.tz)
        if window_start is None or window_end is None:
            return False
        if booking.slot_datetime < window_start or booking.slot_end_datetime > window_end:
            return False

        for block_start, block_end, _ in plan.blocks:
            start = local_to_utc(local_date, block_start, self.tz)
            end = local_to_utc(local_date, block_end, self.tz)
            if start and end and overlaps(booking.slot_datetime, booking.slot_end_datetime, start, end):
                return False

        return True

    def _describe(self, booking: Booking) -> str:
        local = to_local(booking.slot_datetime, self.tz)
        service_name = booking.service.name if booking.service else "appointment"
        return (
            f"Existing booking on {local.strftime('%A')} {local.date().isoformat()} "
            f"at {local.strftime('%I:%M %p').lstrip('0')} ({service_name}, {booking.customer_name})"
        )

    def _find_conflicts(self, staff_id: UUID, plan_for_date: Callable[[date], Optional[DayPlan]]) -> List[str]:
        """
        Upcoming bookings that the proposed schedule would leave uncovered.
        plan_for_date returns None for dates the edit does not touch.
        """
        now = self.now_fn()
        conflicts = []
        for booking in BookingRepository.list_upcoming_for_staff(
                self.db, staff_id, now, now + timedelta(days=self.lookahead_days)
        ):
            local_date = to_local(booking.slot_datetime, self.tz).date()
            plan = plan_for_date(local_date)
            if plan is None:
                continue
            if not self._booking_fits(booking, local_date, plan):
                conflicts.append(self._describe(booking))
        return conflicts

    def _guard(self, staff_id: UUID, conflicts: List[str], force: bool) -> None:
        if not conflicts:
            return
        if not force:
            logger.info(f"Rejected schedule change for staff {staff_id}: {len(conflicts)} booking conflict(s)")
            raise ScheduleConflictError(conflicts)
        logger.warning(
            f"Forcing schedule change for staff {staff_id} over {len(conflicts)} booking conflict(s)"
        )

    def _lock(self, staff_id: UUID) -> None:
        if not CatalogRepository.lock_staff_calendar(self.db, staff_id):
            raise StaffNotFoundError()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    def _build_blocks(blocks: List[ScheduleBlockInput]) -> List[ScheduleBlock]:
        return [
            ScheduleBlock(
                block_start_time=parse_hhmm(block.block_start_time),
                block_end_time=parse_hhmm(block.block_end_time),
                block_type=block.block_type.value,
                title=block.title,
                is_recurring=block.is_recurring,
            )
            for block in blocks
        ]

    def set_weekly_schedule(
            self,
            staff_id: UUID,
            days: List[DayScheduleInput],
            force: bool = False
    ) -> Dict:
        """
        Replace the weekly rules for the given days. A day marked unavailable
        has its rule removed; replacing a day's rule replaces its blocks.
        """
        if not days:
            raise BookingValidationError("At least one day is required")

        proposed = {
            int(day.day_of_week): DayPlan.from_input(day) if day.is_available else DayPlan()
            for day in days
        }

        try:
            self._lock(staff_id)

            def plan_for_date(local_date: date) -> Optional[DayPlan]:
                # Dates with an override are not governed by the weekly rule
                if ScheduleRepository.get_override(self.db, staff_id, local_date):
                    return None
                return proposed.get(local_date.weekday())

            self._guard(staff_id, self._find_conflicts(staff_id, plan_for_date), force)

            ScheduleRepository.delete_weekly_rules(self.db, staff_id, proposed.keys())
            for day in days:
                if not day.is_available:
                    continue
                availability = StaffAvailability(
                    staff_id=staff_id,
                    day_of_week=int(day.day_of_week),
                    start_time=parse_hhmm(day.start_time),
                    end_time=parse_hhmm(day.end_time),
                    override_date=None,
                )
                availability.blocks = self._build_blocks(day.blocks)
                ScheduleRepository.add(self.db, availability)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Updated weekly schedule for staff {staff_id}: {sorted(proposed.keys())}")
        return self.get_schedule(staff_id)

    def set_date_override(
            self,
            staff_id: UUID,
            on_date: date,
            hours: WorkingHoursInput,
            reason: Optional[str] = None,
            force: bool = False
    ) -> Dict:
        """Special hours for one date, replacing any existing override"""
        plan = DayPlan.from_input(hours)

        try:
            self._lock(staff_id)
            conflicts = self._find_conflicts(staff_id, lambda d: plan if d == on_date else None)
            self._guard(staff_id, conflicts, force)

            ScheduleRepository.delete_override(self.db, staff_id, on_date)
            availability = StaffAvailability(
                staff_id=staff_id,
                day_of_week=on_date.weekday(),
                start_time=plan.start,
                end_time=plan.end,
                override_date=on_date,
                reason=reason or "Special hours",
            )
            availability.blocks = self._build_blocks(hours.blocks)
            ScheduleRepository.add(self.db, availability)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Set override for staff {staff_id} on {on_date}: {hours.start_time}-{hours.end_time}")
        return self.get_schedule(staff_id)

    def set_time_off(
            self,
            staff_id: UUID,
            start_date: date,
            end_date: date,
            reason: Optional[str] = None,
            force: bool = False
    ) -> Dict:
        """Mark every date in [start_date, end_date] as a day off"""
        if end_date < start_date:
            raise BookingValidationError("End date must not be before start date")

        try:
            self._lock(staff_id)
            conflicts = self._find_conflicts(
                staff_id, lambda d: DayPlan() if start_date <= d <= end_date else None
            )
            self._guard(staff_id, conflicts, force)

            current = start_date
            while current <= end_date:
                ScheduleRepository.delete_override(self.db, staff_id, current)
                ScheduleRepository.add(self.db, StaffAvailability(
                    staff_id=staff_id,
                    day_of_week=current.weekday(),
                    start_time=MIDNIGHT,
                    end_time=MIDNIGHT,
                    override_date=current,
                    reason=reason or "Time off",
                ))
                current += timedelta(days=1)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Set time off for staff {staff_id}: {start_date} to {end_date}")
        return self.get_schedule(staff_id)

    def clear_date_override(self, staff_id: UUID, on_date: date, force: bool = False) -> Dict:
        """Remove an override; the weekly rule governs the date again"""
        try:
            self._lock(staff_id)
            weekly = DayPlan.from_rule(ScheduleRepository.get_weekly_rule(self.db, staff_id, on_date.weekday()))
            conflicts = self._find_conflicts(staff_id, lambda d: weekly if d == on_date else None)
            self._guard(staff_id, conflicts, force)

            removed = ScheduleRepository.delete_override(self.db, staff_id, on_date)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if removed:
            logger.info(f"Cleared override for staff {staff_id} on {on_date}")
        return self.get_schedule(staff_id)

    def create_default_schedule(self, staff_id: UUID) -> Dict:
        """Tuesday to Saturday, 09:00-18:00"""
        days = [
            DayScheduleInput(day_of_week=day, start_time="09:00", end_time="18:00")
            for day in DEFAULT_WORKING_DAYS
        ]
        return self.set_weekly_schedule(staff_id, days)
