"""Booking repository - confirmed appointments and overlap range queries"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.booking import Booking, BookingStatus


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get(db: Session, booking_id: UUID) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def find_overlapping(
            db: Session,
            staff_id: UUID,
            start: datetime,
            end: datetime,
            exclude_booking_id: Optional[UUID] = None
    ) -> List[Booking]:
        """Non-cancelled bookings whose [slot, slot_end) intersects [start, end)"""
        query = db.query(Booking).filter(
            Booking.staff_id == staff_id,
            Booking.status != BookingStatus.CANCELLED.value,
            Booking.slot_datetime < end,
            Booking.slot_end_datetime > start,
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)

        return query.order_by(Booking.slot_datetime.asc()).all()

    @staticmethod
    def find_exact(db: Session, staff_id: UUID, start: datetime) -> Optional[Booking]:
        return (
            db.query(Booking)
            .filter(
                Booking.staff_id == staff_id,
                Booking.slot_datetime == start,
                Booking.status != BookingStatus.CANCELLED.value,
            )
            .first()
        )

    @staticmethod
    def list_for_staff_between(db: Session, staff_id: UUID, start: datetime, end: datetime) -> List[Booking]:
        return (
            db.query(Booking)
            .filter(
                Booking.staff_id == staff_id,
                Booking.slot_datetime >= start,
                Booking.slot_datetime < end,
            )
            .order_by(Booking.slot_datetime.asc())
            .all()
        )

    @staticmethod
    def list_upcoming_for_staff(db: Session, staff_id: UUID, now: datetime, until: datetime) -> List[Booking]:
        """Future bookings that still occupy the staff member's calendar"""
        return (
            db.query(Booking)
            .filter(
                Booking.staff_id == staff_id,
                Booking.status.in_([BookingStatus.CONFIRMED.value, BookingStatus.PENDING.value]),
                Booking.slot_end_datetime > now,
                Booking.slot_datetime < until,
            )
            .order_by(Booking.slot_datetime.asc())
            .all()
        )

    @staticmethod
    def add(db: Session, booking: Booking) -> Booking:
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def delete_by_id(db: Session, booking_id: UUID) -> int:
        return (
            db.query(Booking)
            .filter(Booking.id == booking_id)
            .delete(synchronize_session=False)
        )
