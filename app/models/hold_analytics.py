# app/models/hold_analytics.py
import uuid

from sqlalchemy import Column, String, Boolean, Uuid
from app.models.base import Base, UTCDateTime


class HoldAnalytics(Base):
    """One row per hold lifecycle, read by the analytics dashboards"""
    __tablename__ = "hold_analytics"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # No foreign keys: the hold row is deleted long before analytics are read
    hold_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    session_id = Column(String(128), nullable=False, index=True)
    staff_id = Column(Uuid(as_uuid=True), nullable=False)
    service_id = Column(Uuid(as_uuid=True), nullable=False)

    held_at = Column(UTCDateTime, nullable=False)
    expired_at = Column(UTCDateTime, nullable=True)
    converted = Column(Boolean, nullable=False, default=False)
