"""Hold repository - short-lived slot reservations"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.booking_hold import BookingHold


class HoldRepository:
    """Repository for booking hold rows. Live means expires_at > now."""

    @staticmethod
    def get(db: Session, hold_id: UUID) -> Optional[BookingHold]:
        return db.query(BookingHold).filter(BookingHold.id == hold_id).first()

    @staticmethod
    def get_live(db: Session, hold_id: UUID, now: datetime) -> Optional[BookingHold]:
        return (
            db.query(BookingHold)
            .filter(BookingHold.id == hold_id, BookingHold.expires_at > now)
            .first()
        )

    @staticmethod
    def list_live_by_session(db: Session, session_id: str, now: datetime) -> List[BookingHold]:
        return (
            db.query(BookingHold)
            .filter(BookingHold.session_id == session_id, BookingHold.expires_at > now)
            .order_by(BookingHold.created_at.desc())
            .all()
        )

    @staticmethod
    def find_live_overlapping(
            db: Session,
            staff_id: UUID,
            start: datetime,
            end: datetime,
            now: datetime,
            exclude_session_id: Optional[str] = None
    ) -> List[BookingHold]:
        query = db.query(BookingHold).filter(
            BookingHold.staff_id == staff_id,
            BookingHold.expires_at > now,
            BookingHold.slot_datetime < end,
            BookingHold.slot_end_datetime > start,
        )
        if exclude_session_id:
            query = query.filter(BookingHold.session_id != exclude_session_id)

        return query.order_by(BookingHold.slot_datetime.asc()).all()

    @staticmethod
    def find_matching(
            db: Session,
            session_id: str,
            staff_id: UUID,
            service_id: UUID,
            start: datetime
    ) -> List[BookingHold]:
        return (
            db.query(BookingHold)
            .filter(
                BookingHold.session_id == session_id,
                BookingHold.staff_id == staff_id,
                BookingHold.service_id == service_id,
                BookingHold.slot_datetime == start,
            )
            .all()
        )

    @staticmethod
    def list_expired(db: Session, now: datetime) -> List[BookingHold]:
        return db.query(BookingHold).filter(BookingHold.expires_at <= now).all()

    @staticmethod
    def list_expired_at_slot(db: Session, staff_id: UUID, start: datetime, now: datetime) -> List[BookingHold]:
        """Expired rows still occupying the (staff, start) unique key"""
        return (
            db.query(BookingHold)
            .filter(
                BookingHold.staff_id == staff_id,
                BookingHold.slot_datetime == start,
                BookingHold.expires_at <= now,
            )
            .all()
        )

    @staticmethod
    def add(db: Session, hold: BookingHold) -> BookingHold:
        db.add(hold)
        db.flush()
        return hold

    @staticmethod
    def delete_by_id(db: Session, hold_id: UUID) -> int:
        """Idempotent delete; returns the number of rows removed"""
        return (
            db.query(BookingHold)
            .filter(BookingHold.id == hold_id)
            .delete(synchronize_session=False)
        )

    @staticmethod
    def delete_expired_by_id(db: Session, hold_id: UUID, now: datetime) -> int:
        """Delete one hold only if it is still expired at delete time"""
        return (
            db.query(BookingHold)
            .filter(BookingHold.id == hold_id, BookingHold.expires_at <= now)
            .delete(synchronize_session=False)
        )

    @staticmethod
    def count_live(db: Session, now: datetime) -> int:
        return db.query(BookingHold).filter(BookingHold.expires_at > now).count()

    @staticmethod
    def count_expired(db: Session, now: datetime) -> int:
        return db.query(BookingHold).filter(BookingHold.expires_at <= now).count()
