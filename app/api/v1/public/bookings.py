# ============================================================================
# FILE: app/api/v1/public/bookings.py
# Booking writes and per-day listings
# ============================================================================
import logging
from datetime import date
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_booking_service
from app.schemas.bookings import (
    BookingCreateRequest,
    BookingRescheduleRequest,
    BookingResponse,
    BookingUpdateRequest,
)
from app.services.booking.booking_service import BookingService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
        request: BookingCreateRequest,
        bookings: BookingService = Depends(get_booking_service)
):
    booking = bookings.create_booking(
        staff_id=request.staff_id,
        service_id=request.service_id,
        slot_datetime=request.slot_datetime,
        customer=request.customer,
        session_id=request.session_id,
        notes=request.notes,
    )
    return BookingResponse(**booking.to_dict())


@router.get("", response_model=List[BookingResponse])
def list_bookings_for_date(
        staff_id: UUID = Query(...),
        on_date: date = Query(..., alias="date"),
        bookings: BookingService = Depends(get_booking_service)
):
    """Bookings starting on a local business date"""
    return [
        BookingResponse(**booking.to_dict())
        for booking in bookings.get_staff_bookings_for_date(staff_id, on_date)
    ]


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
        booking_id: UUID,
        bookings: BookingService = Depends(get_booking_service)
):
    return BookingResponse(**bookings.get_booking(booking_id).to_dict())


@router.patch("/{booking_id}", response_model=BookingResponse)
def update_booking(
        booking_id: UUID,
        request: BookingUpdateRequest,
        bookings: BookingService = Depends(get_booking_service)
):
    booking = bookings.update_booking(
        booking_id,
        status=request.status.value if request.status else None,
        final_price=request.final_price,
        notes=request.notes,
    )
    return BookingResponse(**booking.to_dict())


@router.post("/{booking_id}/reschedule", response_model=BookingResponse)
def reschedule_booking(
        booking_id: UUID,
        request: BookingRescheduleRequest,
        bookings: BookingService = Depends(get_booking_service)
):
    """Move to a new time, optionally with another staff member"""
    booking = bookings.reschedule_booking(
        booking_id,
        new_start=request.slot_datetime,
        new_staff_id=request.staff_id,
    )
    return BookingResponse(**booking.to_dict())


@router.delete("/{booking_id}", response_model=BookingResponse)
def cancel_booking(
        booking_id: UUID,
        bookings: BookingService = Depends(get_booking_service)
):
    """Removes the booking; the slot is free again immediately"""
    booking = bookings.cancel_booking(booking_id)
    logger.info(f"Booking {booking_id} cancelled via API")
    return BookingResponse(**booking.to_dict())
