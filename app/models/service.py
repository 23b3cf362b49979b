# app/models/service.py
"""
Service Model - salon service catalog
Source of truth for duration and base price of each bookable service.
"""
from sqlalchemy import Column, String, Integer, Boolean, Text, Uuid
from sqlalchemy.sql import func
import uuid

from app.models.base import Base, UTCDateTime


class Service(Base):
    __tablename__ = "services"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    duration_minutes = Column(Integer, nullable=False)
    base_price = Column(Integer, nullable=False)  # minor currency units (cents)

    is_active = Column(Boolean, default=True, index=True)

    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, duration={self.duration_minutes})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "duration_minutes": self.duration_minutes,
            "base_price": self.base_price,
            "is_active": self.is_active,
        }

    @property
    def formatted_price(self) -> str:
        """Return human-readable price string"""
        return f"${self.base_price / 100:.2f}"

    @property
    def formatted_duration(self) -> str:
        """Return human-readable duration string"""
        hours = self.duration_minutes // 60
        minutes = self.duration_minutes % 60

        if hours > 0 and minutes > 0:
            return f"{hours}h {minutes}m"
        elif hours > 0:
            return f"{hours}h"
        else:
            return f"{minutes}m"
