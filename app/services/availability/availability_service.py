# ===== app/services/availability/availability_service.py =====
"""
Availability Engine.

Computes bookable start times for a staff member on a local business date
by subtracting schedule blocks, confirmed bookings and live holds from the
working window. Bookings and holds are fetched once per date so the whole
computation runs against one snapshot.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.models.availability import StaffAvailability
from app.models.service import Service
from app.models.staff import Staff
from app.repositories.booking_repository import BookingRepository
from app.repositories.catalog_repository import CatalogRepository
from app.repositories.hold_repository import HoldRepository
from app.repositories.schedule_repository import ScheduleRepository
from app.services.exceptions import (
    AvailabilityLookupError,
    BookingValidationError,
    ServiceNotFoundError,
    StaffIneligibleError,
    StaffNotFoundError,
)
from app.utils.business_time import (
    format_local_time,
    get_business_tz,
    local_to_utc,
    overlaps,
    to_local,
    utc_now,
)

logger = logging.getLogger(__name__)

Interval = Tuple[datetime, datetime]


@dataclass
class WorkingWindow:
    """Effective working hours for one local date, already converted to UTC"""
    local_date: date
    start: datetime
    end: datetime
    blocks: List[Interval] = field(default_factory=list)
    block_titles: List[str] = field(default_factory=list)
    source: Optional[StaffAvailability] = None


class AvailabilityService:
    """Slot generation and conflict detection for one staff calendar"""

    def __init__(
            self,
            db: Session,
            timezone_name: Optional[str] = None,
            now_fn: Callable[[], datetime] = utc_now
    ):
        self.db = db
        self.tz = get_business_tz(timezone_name)
        self.now_fn = now_fn

    # ------------------------------------------------------------------
    # Working window
    # ------------------------------------------------------------------

    def resolve_working_window(self, staff_id: UUID, on_date: date) -> Optional[WorkingWindow]:
        """Override first, then weekly rule. None means the staff member does not work that date."""
        availability = ScheduleRepository.get_effective(self.db, staff_id, on_date)
        if not availability or availability.is_time_off:
            return None

        if availability.end_time <= availability.start_time:
            logger.warning(f"Ignoring empty availability window {availability!r}")
            return None

        start = local_to_utc(on_date, availability.start_time, self.tz)
        end = local_to_utc(on_date, availability.end_time, self.tz)
        if start is None or end is None:
            logger.warning(f"Working window for staff {staff_id} on {on_date} falls in a DST gap")
            return None

        window = WorkingWindow(local_date=on_date, start=start, end=end, source=availability)

        for block in availability.blocks:
            block_start = local_to_utc(on_date, block.block_start_time, self.tz)
            block_end = local_to_utc(on_date, block.block_end_time, self.tz)
            if block_start is None or block_end is None:
                continue
            window.blocks.append((block_start, block_end))
            window.block_titles.append(block.title)

        return window

    def _generate_candidates(
            self,
            window: WorkingWindow,
            duration_minutes: int,
            granularity_minutes: int
    ) -> List[Interval]:
        """Wall-clock stepped starts whose absolute [start, start+duration) fits in the window"""
        candidates = []
        duration = timedelta(minutes=duration_minutes)
        step = timedelta(minutes=granularity_minutes)

        local_cursor = datetime.combine(window.local_date, window.source.start_time)
        local_end = datetime.combine(window.local_date, window.source.end_time)

        while local_cursor < local_end:
            start = local_to_utc(window.local_date, local_cursor.time(), self.tz)
            if start is not None:
                end = start + duration
                if end <= window.end:
                    candidates.append((start, end))

            next_cursor = local_cursor + step
            if next_cursor.date() != window.local_date:
                break
            local_cursor = next_cursor

        return candidates

    # ------------------------------------------------------------------
    # Slot generation
    # ------------------------------------------------------------------

    def load_staff_and_service(self, staff_id: UUID, service_id: UUID) -> Tuple[Staff, Service]:
        """Catalog lookups for a slot query; store errors fail closed"""
        try:
            staff = CatalogRepository.get_staff(self.db, staff_id)
            service = CatalogRepository.get_service(self.db, service_id)
        except SQLAlchemyError:
            logger.error(f"Catalog lookup failed for staff {staff_id}", exc_info=True)
            raise AvailabilityLookupError()

        if not staff:
            raise StaffNotFoundError()
        if not service:
            raise ServiceNotFoundError()
        if not staff.can_perform(service.id):
            raise StaffIneligibleError()
        return staff, service

    def get_available_slots(
            self,
            staff_id: UUID,
            on_date: date,
            service_id: UUID,
            granularity_minutes: Optional[int] = None
    ) -> List[datetime]:
        """Bookable UTC start times for a service on a local business date"""
        staff, service = self.load_staff_and_service(staff_id, service_id)
        if not staff.is_active:
            logger.info(f"Staff {staff_id} is inactive; no slots offered")
            return []

        return self.compute_available_slots(staff_id, on_date, service.duration_minutes, granularity_minutes)

    def compute_available_slots(
            self,
            staff_id: UUID,
            on_date: date,
            duration_minutes: int,
            granularity_minutes: Optional[int] = None
    ) -> List[datetime]:
        if granularity_minutes is None:
            granularity_minutes = get_settings().SLOT_GRANULARITY_MINUTES
        if granularity_minutes <= 0:
            raise BookingValidationError("Slot granularity must be a positive number of minutes")
        if duration_minutes <= 0:
            raise BookingValidationError("Service duration must be positive")

        try:
            window = self.resolve_working_window(staff_id, on_date)
            if not window:
                return []

            candidates = self._generate_candidates(window, duration_minutes, granularity_minutes)
            if not candidates:
                return []

            now = self.now_fn()
            bookings = BookingRepository.find_overlapping(self.db, staff_id, window.start, window.end)
            holds = HoldRepository.find_live_overlapping(self.db, staff_id, window.start, window.end, now)
        except SQLAlchemyError:
            logger.error(f"Availability lookup failed for staff {staff_id} on {on_date}", exc_info=True)
            raise AvailabilityLookupError()

        busy: List[Interval] = list(window.blocks)
        busy.extend((b.slot_datetime, b.slot_end_datetime) for b in bookings)
        busy.extend((h.slot_datetime, h.slot_end_datetime) for h in holds)

        available = [
            start
            for start, end in candidates
            if start > now and not any(overlaps(start, end, busy_start, busy_end) for busy_start, busy_end in busy)
        ]

        logger.info(
            f"Staff {staff_id} on {on_date}: {len(available)}/{len(candidates)} slots open "
            f"({len(bookings)} bookings, {len(holds)} holds, {len(window.blocks)} blocks)"
        )
        return sorted(available)

    # ------------------------------------------------------------------
    # Point checks
    # ------------------------------------------------------------------

    def find_conflict(
            self,
            staff_id: UUID,
            start: datetime,
            end: datetime,
            exclude_session_id: Optional[str] = None,
            include_holds: bool = True
    ) -> Optional[str]:
        """Reason string for the first booking/hold overlapping [start, end), or None"""
        bookings = BookingRepository.find_overlapping(self.db, staff_id, start, end)
        if bookings:
            booking = bookings[0]
            return (
                f"Conflicts with existing booking "
                f"({format_local_time(booking.slot_datetime, self.tz)} - "
                f"{format_local_time(booking.slot_end_datetime, self.tz)})"
            )

        if include_holds:
            holds = HoldRepository.find_live_overlapping(
                self.db, staff_id, start, end, self.now_fn(), exclude_session_id=exclude_session_id
            )
            if holds:
                hold = holds[0]
                return (
                    f"Slot currently held by another customer "
                    f"({format_local_time(hold.slot_datetime, self.tz)} - "
                    f"{format_local_time(hold.slot_end_datetime, self.tz)})"
                )

        return None

    def working_hours_conflict(self, staff_id: UUID, start: datetime, end: datetime) -> Optional[str]:
        """Reason string when [start, end) is outside working hours or inside a schedule block"""
        local_date = to_local(start, self.tz).date()
        window = self.resolve_working_window(staff_id, local_date)
        if not window:
            return f"Staff member is not working on {local_date.isoformat()}"

        if start < window.start or end > window.end:
            return (
                f"Outside working hours "
                f"({format_local_time(window.start, self.tz)} - {format_local_time(window.end, self.tz)})"
            )

        for (block_start, block_end), title in zip(window.blocks, window.block_titles):
            if overlaps(start, end, block_start, block_end):
                return (
                    f"Overlaps {title} "
                    f"({format_local_time(block_start, self.tz)} - {format_local_time(block_end, self.tz)})"
                )

        return None

    def is_staff_available(self, staff_id: UUID, start: datetime, duration_minutes: int) -> bool:
        """Working window and blocks only; bookings and holds are not considered"""
        end = start + timedelta(minutes=duration_minutes)
        return self.working_hours_conflict(staff_id, start, end) is None

    def get_available_staff_for_service(
            self,
            service_id: UUID,
            start: datetime,
            duration_minutes: Optional[int] = None
    ) -> List[Staff]:
        """Staff who perform the service, work at that time and have no booking/hold conflict"""
        if duration_minutes is None:
            service = CatalogRepository.get_service(self.db, service_id)
            if not service:
                raise ServiceNotFoundError()
            duration_minutes = service.duration_minutes

        end = start + timedelta(minutes=duration_minutes)
        available = []
        for staff in CatalogRepository.get_staff_for_service(self.db, service_id):
            if self.working_hours_conflict(staff.id, start, end):
                continue
            if self.find_conflict(staff.id, start, end):
                continue
            available.append(staff)

        return available
