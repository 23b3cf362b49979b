# ============================================================================
# FILE: app/api/dependencies.py
# Per-request construction of the booking components
# ============================================================================
from datetime import datetime
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.services.analytics.hold_analytics_service import HoldAnalyticsRecorder
from app.services.availability.availability_service import AvailabilityService
from app.services.booking.booking_service import BookingService
from app.services.holds.hold_service import BookingHoldService
from app.services.schedule.schedule_service import ScheduleService
from app.utils.business_time import utc_now


def get_clock() -> Callable[[], datetime]:
    """Time source for the request; overridden in tests"""
    return utc_now


def get_availability_service(
        db: Session = Depends(get_db),
        now_fn: Callable[[], datetime] = Depends(get_clock)
) -> AvailabilityService:
    return AvailabilityService(db, now_fn=now_fn)


def get_analytics_recorder(
        db: Session = Depends(get_db),
        now_fn: Callable[[], datetime] = Depends(get_clock)
) -> HoldAnalyticsRecorder:
    return HoldAnalyticsRecorder(db, now_fn=now_fn)


def get_booking_service(
        db: Session = Depends(get_db),
        availability: AvailabilityService = Depends(get_availability_service),
        analytics: HoldAnalyticsRecorder = Depends(get_analytics_recorder),
        now_fn: Callable[[], datetime] = Depends(get_clock)
) -> BookingService:
    return BookingService(db, availability=availability, analytics=analytics, now_fn=now_fn)


def get_hold_service(
        db: Session = Depends(get_db),
        availability: AvailabilityService = Depends(get_availability_service),
        analytics: HoldAnalyticsRecorder = Depends(get_analytics_recorder),
        booking_service: BookingService = Depends(get_booking_service),
        now_fn: Callable[[], datetime] = Depends(get_clock)
) -> BookingHoldService:
    return BookingHoldService(
        db,
        availability=availability,
        analytics=analytics,
        booking_service=booking_service,
        now_fn=now_fn,
    )


def get_schedule_service(
        db: Session = Depends(get_db),
        now_fn: Callable[[], datetime] = Depends(get_clock)
) -> ScheduleService:
    return ScheduleService(db, now_fn=now_fn)
