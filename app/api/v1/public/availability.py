# ============================================================================
# FILE: app/api/v1/public/availability.py
# Slot availability - read-only, no caching across requests
# ============================================================================
import logging
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.dependencies import get_availability_service, get_hold_service
from app.config.settings import get_settings
from app.schemas.availability import AvailableSlotsResponse, AvailableStaffResponse, SlotCheckResponse
from app.services.availability.availability_service import AvailabilityService
from app.services.exceptions import BookingSystemError
from app.services.holds.hold_service import BookingHoldService
from app.utils.business_time import ensure_utc

logger = logging.getLogger(__name__)
router = APIRouter(tags=["availability"])


# Specific routes before the bare collection route

@router.get("/availability/check", response_model=SlotCheckResponse)
def check_slot(
        staff_id: UUID = Query(...),
        start_time: datetime = Query(..., description="Slot start (ISO 8601)"),
        duration_minutes: int = Query(..., ge=1, le=24 * 60),
        session_id: Optional[str] = Query(None, description="Ignore this session's own hold"),
        holds: BookingHoldService = Depends(get_hold_service)
):
    """Cheap pre-flight before submitting a hold or a booking"""
    result = holds.check_slot_availability(
        staff_id, start_time, duration_minutes, exclude_session_id=session_id
    )
    return SlotCheckResponse(**result)


@router.get("/availability/staff", response_model=AvailableStaffResponse)
def available_staff(
        service_id: UUID = Query(...),
        start_time: datetime = Query(...),
        availability: AvailabilityService = Depends(get_availability_service)
):
    """Staff who can take this service at this exact time"""
    start = ensure_utc(start_time)
    try:
        staff = availability.get_available_staff_for_service(service_id, start)
    except BookingSystemError:
        raise
    except Exception as e:
        logger.error(f"Error listing available staff for service {service_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load available staff")

    return AvailableStaffResponse(
        service_id=str(service_id),
        start_time=start,
        staff=[member.to_dict() for member in staff],
    )


@router.get("/availability", response_model=AvailableSlotsResponse)
def get_available_slots(
        staff_id: UUID = Query(...),
        service_id: UUID = Query(...),
        on_date: date = Query(..., alias="date", description="Local business date (YYYY-MM-DD)"),
        granularity_minutes: Optional[int] = Query(None, ge=1, le=240),
        availability: AvailabilityService = Depends(get_availability_service)
):
    """Bookable start times for a staff member and service on a date"""
    granularity = granularity_minutes
    if granularity is None:
        granularity = get_settings().SLOT_GRANULARITY_MINUTES

    staff, service = availability.load_staff_and_service(staff_id, service_id)
    slots = []
    if staff.is_active:
        slots = availability.compute_available_slots(staff_id, on_date, service.duration_minutes, granularity)

    return AvailableSlotsResponse(
        staff_id=str(staff_id),
        service_id=str(service_id),
        date=on_date,
        timezone=availability.tz.key,
        duration_minutes=service.duration_minutes,
        granularity_minutes=granularity,
        slots=slots,
    )
