"""Catalog repository - read-only lookups of services, staff and staff pricing"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.service import Service
from app.models.staff import Staff, StaffServicePricing


class CatalogRepository:
    """Repository for the service/staff catalog"""

    @staticmethod
    def get_service(db: Session, service_id: UUID) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_staff(db: Session, staff_id: UUID) -> Optional[Staff]:
        return db.query(Staff).filter(Staff.id == staff_id).first()

    @staticmethod
    def get_staff_price(db: Session, staff_id: UUID, service_id: UUID) -> Optional[int]:
        """Staff-specific price override for a service, if one exists"""
        pricing = (
            db.query(StaffServicePricing)
            .filter(
                StaffServicePricing.staff_id == staff_id,
                StaffServicePricing.service_id == service_id,
            )
            .first()
        )
        return pricing.custom_price if pricing else None

    @staticmethod
    def get_staff_for_service(db: Session, service_id: UUID) -> List[Staff]:
        return (
            db.query(Staff)
            .filter(Staff.is_active.is_(True), Staff.services.any(Service.id == service_id))
            .order_by(Staff.name.asc())
            .all()
        )

    @staticmethod
    def lock_staff_calendar(db: Session, staff_id: UUID) -> bool:
        """
        Serialize calendar writers for one staff member.

        The version bump takes the staff row lock (PostgreSQL) or the
        database write lock (SQLite) until the surrounding transaction ends.
        Returns False when the staff member does not exist.
        """
        updated = (
            db.query(Staff)
            .filter(Staff.id == staff_id)
            .update(
                {Staff.calendar_version: Staff.calendar_version + 1},
                synchronize_session=False,
            )
        )
        return updated > 0
