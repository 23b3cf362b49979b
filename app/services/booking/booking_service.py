# app/services/booking/booking_service.py
"""
Booking Writer - the one place a booking row is committed.

The final conflict check runs inside the same transaction as the insert,
after the staff calendar lock is taken, so no earlier availability read
can let a double booking through.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.booking import Booking, BookingStatus
from app.repositories.booking_repository import BookingRepository
from app.repositories.catalog_repository import CatalogRepository
from app.repositories.hold_repository import HoldRepository
from app.schemas.bookings import CustomerInfo
from app.services.analytics.hold_analytics_service import HoldAnalyticsRecorder
from app.services.availability.availability_service import AvailabilityService
from app.services.exceptions import (
    BookingNotFoundError,
    BookingValidationError,
    HoldExpiredError,
    HoldNotFoundError,
    ServiceNotFoundError,
    SlotConflictError,
    StaffIneligibleError,
    StaffNotFoundError,
    StaffUnavailableError,
)
from app.utils.business_time import ensure_utc, format_local_time, local_day_bounds, utc_now

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.PENDING.value)


class BookingService:
    """Service for booking writes"""

    def __init__(
            self,
            db: Session,
            availability: Optional[AvailabilityService] = None,
            analytics: Optional[HoldAnalyticsRecorder] = None,
            now_fn: Callable[[], datetime] = utc_now
    ):
        self.db = db
        self.now_fn = now_fn
        self.availability = availability or AvailabilityService(db, now_fn=now_fn)
        self.analytics = analytics or HoldAnalyticsRecorder(db, now_fn=now_fn)

    def create_booking(
            self,
            staff_id: UUID,
            service_id: UUID,
            slot_datetime: datetime,
            customer: CustomerInfo,
            session_id: Optional[str] = None,
            hold_id: Optional[UUID] = None,
            notes: Optional[str] = None
    ) -> Booking:
        """
        Create a confirmed booking.

        Everything below runs in one transaction; any failure rolls back
        the whole operation, including hold deletion.

        Args:
            staff_id: Staff member to book
            service_id: Service to perform
            slot_datetime: Start time (aware; naive values are taken as UTC)
            customer: Validated customer details
            session_id: Checkout session whose matching holds are consumed
            hold_id: Hold being converted; must still be live at commit time
            notes: Optional booking notes

        Returns:
            The committed booking with staff and service loaded

        Raises:
            StaffNotFoundError, ServiceNotFoundError, StaffIneligibleError,
            SlotConflictError, StaffUnavailableError, HoldExpiredError,
            HoldNotFoundError, BookingValidationError
        """
        slot_start = ensure_utc(slot_datetime)
        now = self.now_fn()
        if slot_start <= now:
            raise BookingValidationError("Cannot book a time slot in the past")

        try:
            if not CatalogRepository.lock_staff_calendar(self.db, staff_id):
                raise StaffNotFoundError()

            staff = CatalogRepository.get_staff(self.db, staff_id)
            service = CatalogRepository.get_service(self.db, service_id)
            if not service:
                raise ServiceNotFoundError()
            if not staff.is_active:
                raise StaffUnavailableError("Staff member is not accepting bookings")
            if not staff.can_perform(service.id):
                raise StaffIneligibleError()

            slot_end = slot_start + timedelta(minutes=service.duration_minutes)

            if hold_id:
                self._require_live_hold(hold_id, now)

            self._check_conflicts(staff_id, slot_start, slot_end, session_id, now)

            hours_reason = self.availability.working_hours_conflict(staff_id, slot_start, slot_end)
            if hours_reason:
                raise StaffUnavailableError("Staff is not available at this time", reason=hours_reason)

            custom_price = CatalogRepository.get_staff_price(self.db, staff_id, service_id)
            final_price = custom_price if custom_price is not None else service.base_price

            if session_id:
                consumed = self._consume_session_holds(session_id, staff_id, service_id, slot_start)
                if hold_id and hold_id not in consumed:
                    raise HoldNotFoundError()

            booking = BookingRepository.add(self.db, Booking(
                staff_id=staff_id,
                service_id=service_id,
                slot_datetime=slot_start,
                slot_end_datetime=slot_end,
                duration_minutes=service.duration_minutes,
                customer_name=customer.name,
                customer_phone=customer.phone,
                customer_email=customer.email,
                customer_id=customer.customer_id,
                final_price=final_price,
                status=BookingStatus.CONFIRMED.value,
                notes=notes,
            ))
            self.db.commit()

        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Booking insert lost the race for staff {staff_id} at {slot_start.isoformat()}")
            raise SlotConflictError("Time slot already booked", reason="Time slot already booked")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(
            f"Created booking {booking.id}: staff {staff_id}, service {service_id} "
            f"at {slot_start.isoformat()} for {final_price}"
        )
        return booking

    def _require_live_hold(self, hold_id: UUID, now: datetime) -> None:
        if HoldRepository.get_live(self.db, hold_id, now):
            return
        if HoldRepository.get(self.db, hold_id):
            raise HoldExpiredError()
        raise HoldNotFoundError()

    def _check_conflicts(
            self,
            staff_id: UUID,
            start: datetime,
            end: datetime,
            session_id: Optional[str],
            now: datetime,
            exclude_booking_id: Optional[UUID] = None
    ) -> None:
        """Authoritative overlap check; must run after the calendar lock"""
        if not exclude_booking_id and BookingRepository.find_exact(self.db, staff_id, start):
            raise SlotConflictError("Time slot already booked", reason="Time slot already booked")

        bookings = BookingRepository.find_overlapping(
            self.db, staff_id, start, end, exclude_booking_id=exclude_booking_id
        )
        if bookings:
            existing = bookings[0]
            reason = (
                f"Conflicts with existing booking "
                f"({format_local_time(existing.slot_datetime, self.availability.tz)} - "
                f"{format_local_time(existing.slot_end_datetime, self.availability.tz)})"
            )
            raise SlotConflictError("Booking conflicts with existing appointment", reason=reason)

        holds = HoldRepository.find_live_overlapping(
            self.db, staff_id, start, end, now, exclude_session_id=session_id
        )
        if holds:
            raise SlotConflictError(
                "This time slot is currently held by another customer",
                reason="Slot currently held by another customer",
            )

    def _consume_session_holds(
            self,
            session_id: str,
            staff_id: UUID,
            service_id: UUID,
            start: datetime
    ) -> List[UUID]:
        """Delete the session's holds for this exact booking and mark them converted"""
        consumed = []
        for hold in HoldRepository.find_matching(self.db, session_id, staff_id, service_id, start):
            if HoldRepository.delete_by_id(self.db, hold.id):
                consumed.append(hold.id)
                self.analytics.record_hold_converted(session_id, staff_id, service_id, hold_id=hold.id)

        if consumed:
            logger.info(f"Consumed {len(consumed)} hold(s) for session {session_id}")
        return consumed

    # ------------------------------------------------------------------
    # Staff-side edits
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: UUID) -> Booking:
        booking = BookingRepository.get(self.db, booking_id)
        if not booking:
            raise BookingNotFoundError()
        return booking

    def cancel_booking(self, booking_id: UUID) -> Booking:
        """Delete a future booking; the freed slot is bookable immediately"""
        try:
            booking = self.get_booking(booking_id)
            if booking.slot_datetime <= self.now_fn():
                raise BookingValidationError("Cannot cancel past bookings")

            CatalogRepository.lock_staff_calendar(self.db, booking.staff_id)
            self.db.expunge(booking)
            BookingRepository.delete_by_id(self.db, booking_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Cancelled booking {booking_id} (staff {booking.staff_id} at {booking.slot_datetime.isoformat()})")
        return booking

    def update_booking(
            self,
            booking_id: UUID,
            status: Optional[str] = None,
            final_price: Optional[int] = None,
            notes: Optional[str] = None
    ) -> Booking:
        """Staff edits to status, price or notes. Reactivating a cancelled booking re-checks conflicts."""
        if status is not None and status not in {s.value for s in BookingStatus}:
            raise BookingValidationError(f"Invalid booking status: {status}")
        if final_price is not None and final_price < 0:
            raise BookingValidationError("Price cannot be negative")

        try:
            booking = self.get_booking(booking_id)

            reactivating = (
                status in ACTIVE_STATUSES
                and booking.status not in ACTIVE_STATUSES
            )
            if reactivating:
                CatalogRepository.lock_staff_calendar(self.db, booking.staff_id)
                self._check_conflicts(
                    booking.staff_id,
                    booking.slot_datetime,
                    booking.slot_end_datetime,
                    session_id=None,
                    now=self.now_fn(),
                    exclude_booking_id=booking.id,
                )

            if status is not None:
                booking.status = status
            if final_price is not None:
                booking.final_price = final_price
            if notes is not None:
                booking.notes = notes

            self.db.flush()
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise SlotConflictError("Time slot already booked", reason="Time slot already booked")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(f"Updated booking {booking_id}")
        return booking

    def reschedule_booking(
            self,
            booking_id: UUID,
            new_start: datetime,
            new_staff_id: Optional[UUID] = None
    ) -> Booking:
        """
        Move a booking to a new start time, optionally to another staff member.

        Both calendars are locked in id order before the target is checked
        the same way a new booking is. Moving to a different staff member
        re-prices the booking from that member's price list.

        Raises:
            BookingNotFoundError, StaffNotFoundError, StaffIneligibleError,
            SlotConflictError, StaffUnavailableError, BookingValidationError
        """
        slot_start = ensure_utc(new_start)
        now = self.now_fn()
        if slot_start <= now:
            raise BookingValidationError("Cannot reschedule to a time slot in the past")

        try:
            booking = self.get_booking(booking_id)
            if booking.slot_datetime <= now:
                raise BookingValidationError("Cannot reschedule past bookings")
            if booking.status not in ACTIVE_STATUSES:
                raise BookingValidationError(f"Cannot reschedule a {booking.status} booking")

            old_staff_id = booking.staff_id
            staff_id = new_staff_id or old_staff_id
            for locked_id in sorted({old_staff_id, staff_id}, key=str):
                if not CatalogRepository.lock_staff_calendar(self.db, locked_id):
                    raise StaffNotFoundError()

            if staff_id != old_staff_id:
                staff = CatalogRepository.get_staff(self.db, staff_id)
                if not staff.is_active:
                    raise StaffUnavailableError("Staff member is not accepting bookings")
                if not staff.can_perform(booking.service_id):
                    raise StaffIneligibleError()

            slot_end = slot_start + timedelta(minutes=booking.duration_minutes)

            self._check_conflicts(
                staff_id, slot_start, slot_end,
                session_id=None,
                now=now,
                exclude_booking_id=booking.id,
            )

            hours_reason = self.availability.working_hours_conflict(staff_id, slot_start, slot_end)
            if hours_reason:
                raise StaffUnavailableError("Staff is not available at the new time", reason=hours_reason)

            if staff_id != old_staff_id:
                custom_price = CatalogRepository.get_staff_price(self.db, staff_id, booking.service_id)
                booking.final_price = custom_price if custom_price is not None else booking.service.base_price

            booking.staff_id = staff_id
            booking.slot_datetime = slot_start
            booking.slot_end_datetime = slot_end

            self.db.flush()
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise SlotConflictError("Time slot already booked", reason="Time slot already booked")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(
            f"Rescheduled booking {booking_id} to staff {staff_id} at {slot_start.isoformat()}"
        )
        return booking

    def get_staff_bookings_for_date(self, staff_id: UUID, on_date: date) -> List[Booking]:
        """All bookings starting on a local business date, any status"""
        day_start, day_end = local_day_bounds(on_date, self.availability.tz)
        return BookingRepository.list_for_staff_between(self.db, staff_id, day_start, day_end)
