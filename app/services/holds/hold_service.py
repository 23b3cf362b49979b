# app/services/holds/hold_service.py
"""
Hold Manager.

A hold is a short-lived claim on a slot while a customer completes checkout.
Lifecycle: none -> held -> expired | released | converted. Expiry is lazy:
every read filters on expires_at > now, creation evicts expired rows first,
and a Celery beat task sweeps the table so expiry analytics land promptly.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.models.booking import Booking
from app.models.booking_hold import BookingHold
from app.repositories.catalog_repository import CatalogRepository
from app.repositories.hold_repository import HoldRepository
from app.services.analytics.hold_analytics_service import HoldAnalyticsRecorder
from app.services.availability.availability_service import AvailabilityService
from app.services.exceptions import (
    BookingValidationError,
    HoldExpiredError,
    HoldNotFoundError,
    ServiceNotFoundError,
    SlotConflictError,
    StaffIneligibleError,
    StaffNotFoundError,
    StaffUnavailableError,
)
from app.utils.business_time import ensure_utc, utc_now

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "This time slot is no longer available"


class BookingHoldService:
    """Create, release, expire and convert booking holds"""

    def __init__(
            self,
            db: Session,
            availability: Optional[AvailabilityService] = None,
            analytics: Optional[HoldAnalyticsRecorder] = None,
            booking_service=None,
            hold_duration_seconds: Optional[int] = None,
            now_fn: Callable[[], datetime] = utc_now
    ):
        self.db = db
        self.now_fn = now_fn
        self.availability = availability or AvailabilityService(db, now_fn=now_fn)
        self.analytics = analytics or HoldAnalyticsRecorder(db, now_fn=now_fn)
        self._booking_service = booking_service

        if hold_duration_seconds is None:
            hold_duration_seconds = get_settings().HOLD_DURATION_SECONDS
        self.hold_duration = timedelta(seconds=hold_duration_seconds)

    @property
    def booking_service(self):
        if self._booking_service is None:
            from app.services.booking.booking_service import BookingService

            self._booking_service = BookingService(
                self.db,
                availability=self.availability,
                analytics=self.analytics,
                now_fn=self.now_fn,
            )
        return self._booking_service

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_hold(
            self,
            session_id: str,
            staff_id: UUID,
            service_id: UUID,
            slot_datetime: datetime
    ) -> BookingHold:
        """
        Hold a slot for a checkout session.

        Any live hold the session already owns is released first, so a
        session never holds more than one slot. The conflict check and the
        insert run in one transaction that starts by locking the staff
        calendar; the (staff, slot) unique constraint backs it up.

        Raises:
            BookingValidationError: empty session or a start time in the past
            StaffNotFoundError / ServiceNotFoundError
            StaffIneligibleError: staff member does not perform the service
            SlotConflictError: overlapping booking or another session's live hold
            StaffUnavailableError: outside working hours or inside a schedule block
        """
        if not session_id or not session_id.strip():
            raise BookingValidationError("Session id is required")

        slot_start = ensure_utc(slot_datetime)
        if slot_start <= self.now_fn():
            raise BookingValidationError("Cannot create hold for past time slots")

        self.cleanup_expired_holds()

        try:
            if not CatalogRepository.lock_staff_calendar(self.db, staff_id):
                raise StaffNotFoundError()

            self._evict_expired_at_slot(staff_id, slot_start)

            released = self._delete_session_holds(session_id)
            if released:
                logger.info(f"Released {released} previous hold(s) for session {session_id}")

            service = CatalogRepository.get_service(self.db, service_id)
            if not service:
                raise ServiceNotFoundError()

            staff = CatalogRepository.get_staff(self.db, staff_id)
            if not staff.is_active:
                raise StaffUnavailableError("Staff member is not accepting bookings")
            if not staff.can_perform(service.id):
                raise StaffIneligibleError()

            slot_end = slot_start + timedelta(minutes=service.duration_minutes)

            reason = self.availability.find_conflict(staff_id, slot_start, slot_end)
            if reason:
                raise SlotConflictError(f"{SLOT_TAKEN_MESSAGE}. {reason}", reason=reason)

            hours_reason = self.availability.working_hours_conflict(staff_id, slot_start, slot_end)
            if hours_reason:
                raise StaffUnavailableError("Staff is not available at this time", reason=hours_reason)

            now = self.now_fn()
            hold = HoldRepository.add(self.db, BookingHold(
                session_id=session_id,
                staff_id=staff_id,
                service_id=service_id,
                slot_datetime=slot_start,
                slot_end_datetime=slot_end,
                duration_minutes=service.duration_minutes,
                expires_at=now + self.hold_duration,
                created_at=now,
            ))

            self.analytics.record_hold_created(session_id, staff_id, service_id, hold_id=hold.id)
            self.db.commit()

        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Hold insert lost the race for staff {staff_id} at {slot_start.isoformat()}")
            raise SlotConflictError(
                f"{SLOT_TAKEN_MESSAGE}. Slot currently held by another customer",
                reason="Slot currently held by another customer",
            )
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Created hold {hold.id} for session {session_id}: staff {staff_id} "
            f"at {slot_start.isoformat()} until {hold.expires_at.isoformat()}"
        )
        return hold

    # ------------------------------------------------------------------
    # Release
    # ------------------------------------------------------------------

    def release_hold(self, hold_id: UUID) -> None:
        """Idempotent; releasing a hold that is already gone is a no-op"""
        try:
            deleted = HoldRepository.delete_by_id(self.db, hold_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if deleted:
            logger.info(f"Released hold {hold_id}")

    def release_hold_by_session(self, session_id: str) -> int:
        try:
            deleted = self._delete_session_holds(session_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if deleted:
            logger.info(f"Released {deleted} hold(s) for session {session_id}")
        return deleted

    def _delete_session_holds(self, session_id: str) -> int:
        deleted = 0
        for hold in HoldRepository.list_live_by_session(self.db, session_id, self.now_fn()):
            deleted += HoldRepository.delete_by_id(self.db, hold.id)
        return deleted

    def _evict_expired_at_slot(self, staff_id: UUID, slot_start: datetime) -> int:
        """Clear expired rows on the exact slot key; runs under the calendar lock"""
        now = self.now_fn()
        evicted = 0
        for hold in HoldRepository.list_expired_at_slot(self.db, staff_id, slot_start, now):
            if HoldRepository.delete_expired_by_id(self.db, hold.id, now):
                self.analytics.record_hold_expired(hold.session_id, hold_id=hold.id)
                evicted += 1
        if evicted:
            logger.info(f"Evicted {evicted} expired hold(s) on staff {staff_id} at {slot_start.isoformat()}")
        return evicted

    # ------------------------------------------------------------------
    # Convert
    # ------------------------------------------------------------------

    def _get_live_or_raise(self, hold_id: UUID) -> BookingHold:
        hold = HoldRepository.get_live(self.db, hold_id, self.now_fn())
        if hold:
            return hold
        if HoldRepository.get(self.db, hold_id):
            raise HoldExpiredError()
        raise HoldNotFoundError()

    def convert_hold(self, hold_id: UUID) -> BookingHold:
        """
        Close a live hold as converted without writing a booking.

        Used when the booking row is written by another path. Returns the
        detached hold so callers can read its staff/service/slot.
        """
        try:
            hold = self._get_live_or_raise(hold_id)
            self.analytics.record_hold_converted(
                hold.session_id, hold.staff_id, hold.service_id, hold_id=hold.id
            )
            HoldRepository.delete_by_id(self.db, hold.id)
            self.db.expunge(hold)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Converted hold {hold_id}")
        return hold

    def convert_hold_to_booking(self, hold_id: UUID, customer, notes: Optional[str] = None) -> Booking:
        """
        Turn a live hold into a confirmed booking.

        The hold's staff, service and start time are the source of truth.
        Hold consumption and the booking insert commit together; if the
        booking is rejected the hold stays in place until it expires.

        Raises:
            HoldExpiredError: the hold expired before checkout finished
            HoldNotFoundError: no such hold
            plus any Booking Writer error
        """
        try:
            hold = self._get_live_or_raise(hold_id)
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return self.booking_service.create_booking(
            staff_id=hold.staff_id,
            service_id=hold.service_id,
            slot_datetime=hold.slot_datetime,
            customer=customer,
            session_id=hold.session_id,
            hold_id=hold.id,
            notes=notes,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_active_hold_by_session(self, session_id: str) -> Optional[BookingHold]:
        holds = HoldRepository.list_live_by_session(self.db, session_id, self.now_fn())
        return holds[0] if holds else None

    def get_hold_by_id(self, hold_id: UUID) -> Optional[BookingHold]:
        return HoldRepository.get_live(self.db, hold_id, self.now_fn())

    def check_slot_availability(
            self,
            staff_id: UUID,
            slot_datetime: datetime,
            duration_minutes: int,
            exclude_session_id: Optional[str] = None
    ) -> Dict:
        """Read-only pre-flight against bookings and live holds"""
        if duration_minutes <= 0:
            raise BookingValidationError("Duration must be a positive number of minutes")

        start = ensure_utc(slot_datetime)
        end = start + timedelta(minutes=duration_minutes)
        try:
            reason = self.availability.find_conflict(
                staff_id, start, end, exclude_session_id=exclude_session_id
            )
        except SQLAlchemyError:
            logger.error(f"Slot availability check failed for staff {staff_id}", exc_info=True)
            return {"available": False, "reason": "Error checking availability"}

        if reason:
            return {"available": False, "reason": reason}
        return {"available": True}

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def cleanup_expired_holds(self) -> int:
        """
        Delete every expired hold and stamp its analytics row as expired.
        Safe to run concurrently and repeatedly. Never raises.
        """
        try:
            now = self.now_fn()
            removed = 0
            expired: List[BookingHold] = HoldRepository.list_expired(self.db, now)
            for hold in expired:
                # Another cleaner or a conversion may have won; only the deleter records expiry
                if HoldRepository.delete_expired_by_id(self.db, hold.id, now):
                    self.analytics.record_hold_expired(hold.session_id, hold_id=hold.id)
                    removed += 1
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error("Failed to clean up expired holds", exc_info=True)
            return 0

        if removed:
            logger.info(f"Cleaned up {removed} expired hold(s)")
        return removed
