# app/models/booking.py
import enum
import uuid

from sqlalchemy import Column, String, Integer, Text, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.models.base import Base, UTCDateTime


class BookingStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        # First line of defense against double booking the exact same start
        Index(
            "uq_bookings_staff_slot_active",
            "staff_id", "slot_datetime",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
        Index("idx_bookings_staff_window", "staff_id", "slot_datetime", "slot_end_datetime"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    staff_id = Column(Uuid(as_uuid=True), ForeignKey("staff.id"), nullable=False)
    service_id = Column(Uuid(as_uuid=True), ForeignKey("services.id"), nullable=False)

    # Appointment interval, UTC
    slot_datetime = Column(UTCDateTime, nullable=False)
    slot_end_datetime = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    # Customer info
    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)
    customer_email = Column(String, nullable=True)
    customer_id = Column(String, nullable=True)

    final_price = Column(Integer, nullable=False)  # minor currency units
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)
    notes = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, server_default=func.now(), onupdate=func.now())

    staff = relationship("Staff", lazy="joined")
    service = relationship("Service", lazy="joined")

    def __repr__(self):
        return f"<Booking(id={self.id}, staff_id={self.staff_id}, slot={self.slot_datetime})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "staff_id": str(self.staff_id),
            "service_id": str(self.service_id),
            "slot_datetime": self.slot_datetime.isoformat(),
            "slot_end_datetime": self.slot_end_datetime.isoformat(),
            "duration_minutes": self.duration_minutes,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "customer_id": self.customer_id,
            "final_price": self.final_price,
            "status": self.status,
            "notes": self.notes,
            "staff_name": self.staff.name if self.staff else None,
            "service_name": self.service.name if self.service else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
