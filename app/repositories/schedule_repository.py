"""Schedule repository - weekly rules, date overrides and their blocks"""
from datetime import date
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.availability import StaffAvailability


class ScheduleRepository:
    """Repository for staff availability rows"""

    @staticmethod
    def get_override(db: Session, staff_id: UUID, on_date: date) -> Optional[StaffAvailability]:
        return (
            db.query(StaffAvailability)
            .filter(
                StaffAvailability.staff_id == staff_id,
                StaffAvailability.override_date == on_date,
            )
            .first()
        )

    @staticmethod
    def get_weekly_rule(db: Session, staff_id: UUID, day_of_week: int) -> Optional[StaffAvailability]:
        return (
            db.query(StaffAvailability)
            .filter(
                StaffAvailability.staff_id == staff_id,
                StaffAvailability.day_of_week == int(day_of_week),
                StaffAvailability.override_date.is_(None),
            )
            .first()
        )

    @staticmethod
    def get_effective(db: Session, staff_id: UUID, on_date: date) -> Optional[StaffAvailability]:
        """Date override if one exists, else the weekly rule for that weekday"""
        override = ScheduleRepository.get_override(db, staff_id, on_date)
        if override:
            return override
        return ScheduleRepository.get_weekly_rule(db, staff_id, on_date.weekday())

    @staticmethod
    def list_for_staff(db: Session, staff_id: UUID) -> List[StaffAvailability]:
        return (
            db.query(StaffAvailability)
            .filter(StaffAvailability.staff_id == staff_id)
            .order_by(
                StaffAvailability.override_date.asc(),
                StaffAvailability.day_of_week.asc(),
                StaffAvailability.start_time.asc(),
            )
            .all()
        )

    @staticmethod
    def list_overrides_between(db: Session, staff_id: UUID, start_date: date, end_date: date) -> List[StaffAvailability]:
        return (
            db.query(StaffAvailability)
            .filter(
                StaffAvailability.staff_id == staff_id,
                StaffAvailability.override_date.isnot(None),
                StaffAvailability.override_date >= start_date,
                StaffAvailability.override_date <= end_date,
            )
            .all()
        )

    @staticmethod
    def delete_weekly_rules(db: Session, staff_id: UUID, days: Iterable[int]) -> int:
        # ORM deletes so schedule blocks cascade on every backend
        rows = (
            db.query(StaffAvailability)
            .filter(
                StaffAvailability.staff_id == staff_id,
                StaffAvailability.day_of_week.in_([int(day) for day in days]),
                StaffAvailability.override_date.is_(None),
            )
            .all()
        )
        for row in rows:
            db.delete(row)
        db.flush()
        return len(rows)

    @staticmethod
    def delete_override(db: Session, staff_id: UUID, on_date: date) -> int:
        row = ScheduleRepository.get_override(db, staff_id, on_date)
        if not row:
            return 0
        db.delete(row)
        db.flush()
        return 1

    @staticmethod
    def add(db: Session, availability: StaffAvailability) -> StaffAvailability:
        db.add(availability)
        db.flush()
        return availability
