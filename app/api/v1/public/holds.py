# ============================================================================
# FILE: app/api/v1/public/holds.py
# Checkout holds - claim, inspect, release and convert
# IMPORTANT: Specific routes MUST come before parameterized routes
# ============================================================================
import logging
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_clock, get_hold_service
from app.schemas.bookings import BookingResponse, HoldConvertRequest
from app.schemas.holds import HoldCreateRequest, HoldResponse
from app.services.exceptions import HoldNotFoundError
from app.services.holds.hold_service import BookingHoldService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/holds", tags=["holds"])


@router.post("", response_model=HoldResponse, status_code=status.HTTP_201_CREATED)
def create_hold(
        request: HoldCreateRequest,
        holds: BookingHoldService = Depends(get_hold_service),
        now_fn: Callable[[], datetime] = Depends(get_clock)
):
    """
    Hold a slot for the checkout session.
    Any previous hold owned by the session is released.
    """
    hold = holds.create_hold(
        session_id=request.session_id,
        staff_id=request.staff_id,
        service_id=request.service_id,
        slot_datetime=request.slot_datetime,
    )
    return HoldResponse.from_hold(hold, now_fn())


@router.get("", response_model=Optional[HoldResponse])
def get_session_hold(
        session_id: str = Query(..., min_length=1),
        holds: BookingHoldService = Depends(get_hold_service),
        now_fn: Callable[[], datetime] = Depends(get_clock)
):
    """The session's live hold, or null"""
    hold = holds.get_active_hold_by_session(session_id)
    if not hold:
        return None
    return HoldResponse.from_hold(hold, now_fn())


@router.delete("", status_code=status.HTTP_200_OK)
def release_session_holds(
        session_id: str = Query(..., min_length=1),
        holds: BookingHoldService = Depends(get_hold_service)
):
    released = holds.release_hold_by_session(session_id)
    return {"released": released}


@router.get("/{hold_id}", response_model=HoldResponse)
def get_hold(
        hold_id: UUID,
        holds: BookingHoldService = Depends(get_hold_service),
        now_fn: Callable[[], datetime] = Depends(get_clock)
):
    hold = holds.get_hold_by_id(hold_id)
    if not hold:
        raise HoldNotFoundError()
    return HoldResponse.from_hold(hold, now_fn())


@router.delete("/{hold_id}", status_code=status.HTTP_204_NO_CONTENT)
def release_hold(
        hold_id: UUID,
        holds: BookingHoldService = Depends(get_hold_service)
):
    """Idempotent"""
    holds.release_hold(hold_id)


@router.post("/{hold_id}/convert", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def convert_hold(
        hold_id: UUID,
        request: HoldConvertRequest,
        holds: BookingHoldService = Depends(get_hold_service)
):
    """Complete checkout: turn the live hold into a confirmed booking"""
    booking = holds.convert_hold_to_booking(hold_id, request.customer, notes=request.notes)
    return BookingResponse(**booking.to_dict())
