# app/models/booking_hold.py
import uuid

from sqlalchemy import Column, String, Integer, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.models.base import Base, UTCDateTime


class BookingHold(Base):
    """Short-lived claim on a slot while a customer completes checkout"""
    __tablename__ = "booking_holds"
    __table_args__ = (
        UniqueConstraint("staff_id", "slot_datetime", name="uq_booking_holds_staff_slot"),
        Index("idx_booking_holds_staff_window", "staff_id", "slot_datetime", "slot_end_datetime"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id = Column(String(128), nullable=False, index=True)

    staff_id = Column(Uuid(as_uuid=True), ForeignKey("staff.id"), nullable=False)
    service_id = Column(Uuid(as_uuid=True), ForeignKey("services.id"), nullable=False)

    slot_datetime = Column(UTCDateTime, nullable=False)
    slot_end_datetime = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    expires_at = Column(UTCDateTime, nullable=False, index=True)
    created_at = Column(UTCDateTime, server_default=func.now())

    staff = relationship("Staff", lazy="joined")
    service = relationship("Service", lazy="joined")

    def __repr__(self):
        return f"<BookingHold(id={self.id}, session={self.session_id}, slot={self.slot_datetime})>"

    def is_live(self, now) -> bool:
        return self.expires_at > now

    def remaining_seconds(self, now) -> int:
        return max(0, int((self.expires_at - now).total_seconds()))
