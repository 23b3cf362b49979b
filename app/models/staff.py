# app/models/staff.py
"""
Staff Model - stylists who can be booked, the services they perform and
their per-service price overrides
"""
from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Table, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from app.models.base import Base, UTCDateTime


staff_services = Table(
    "staff_services",
    Base.metadata,
    Column("staff_id", Uuid(as_uuid=True), ForeignKey("staff.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", Uuid(as_uuid=True), ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class Staff(Base):
    __tablename__ = "staff"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True)

    # Bumped by every calendar writer; the UPDATE doubles as the per-staff write lock
    calendar_version = Column(Integer, nullable=False, default=0)

    created_at = Column(UTCDateTime, server_default=func.now())

    services = relationship("Service", secondary=staff_services, lazy="selectin")
    availability = relationship(
        "StaffAvailability",
        back_populates="staff",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Staff(id={self.id}, name={self.name})>"

    def can_perform(self, service_id) -> bool:
        return any(service.id == service_id for service in self.services)

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "is_active": self.is_active,
            "service_ids": [str(service.id) for service in self.services],
        }


class StaffServicePricing(Base):
    """Staff-specific price for a service, overriding the base price"""
    __tablename__ = "staff_service_pricing"
    __table_args__ = (
        UniqueConstraint("staff_id", "service_id", name="uq_staff_service_pricing"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    staff_id = Column(Uuid(as_uuid=True), ForeignKey("staff.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(Uuid(as_uuid=True), ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    custom_price = Column(Integer, nullable=False)  # minor currency units
