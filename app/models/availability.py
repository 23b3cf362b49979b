# app/models/availability.py
"""
Staff availability: weekly rules, date overrides and the schedule blocks
(lunch, breaks) inside a working day
"""
import enum
import uuid
from datetime import time

from sqlalchemy import Column, String, Integer, Boolean, Time, Date, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import relationship

from app.models.base import Base

MIDNIGHT = time(0, 0)


class DayOfWeek(enum.IntEnum):
    """Matches date.weekday(): 0=Monday, 6=Sunday"""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


class BlockType(str, enum.Enum):
    LUNCH = "lunch"
    BREAK = "break"
    APPOINTMENT = "appointment"
    PERSONAL = "personal"


class StaffAvailability(Base):
    """
    Weekly rule (override_date is NULL) or a date override for one staff member.
    An override of 00:00-00:00 marks the date as time off.
    """
    __tablename__ = "staff_availability"
    __table_args__ = (
        Index(
            "uq_staff_availability_weekly",
            "staff_id", "day_of_week",
            unique=True,
            postgresql_where=text("override_date IS NULL"),
            sqlite_where=text("override_date IS NULL"),
        ),
        Index(
            "uq_staff_availability_override",
            "staff_id", "override_date",
            unique=True,
            postgresql_where=text("override_date IS NOT NULL"),
            sqlite_where=text("override_date IS NOT NULL"),
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    staff_id = Column(Uuid(as_uuid=True), ForeignKey("staff.id", ondelete="CASCADE"), nullable=False, index=True)

    day_of_week = Column(Integer, nullable=False)  # 0=Monday, 6=Sunday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    override_date = Column(Date, nullable=True)
    reason = Column(String, nullable=True)  # "Vacation", "Special hours", etc.

    staff = relationship("Staff", back_populates="availability")
    blocks = relationship(
        "ScheduleBlock",
        back_populates="availability",
        cascade="all, delete-orphan",
        order_by="ScheduleBlock.block_start_time",
        lazy="selectin",
    )

    @property
    def is_override(self) -> bool:
        return self.override_date is not None

    @property
    def is_time_off(self) -> bool:
        return self.is_override and self.start_time == MIDNIGHT and self.end_time == MIDNIGHT

    def __repr__(self):
        target = self.override_date.isoformat() if self.override_date else DayOfWeek(self.day_of_week).name
        return f"<StaffAvailability(staff_id={self.staff_id}, {target} {self.start_time}-{self.end_time})>"


class ScheduleBlock(Base):
    """Non-bookable interval inside a working day"""
    __tablename__ = "schedule_blocks"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    availability_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("staff_availability.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    block_start_time = Column(Time, nullable=False)
    block_end_time = Column(Time, nullable=False)
    block_type = Column(String(20), nullable=False, default=BlockType.BREAK.value)
    title = Column(String(200), nullable=False)
    is_recurring = Column(Boolean, default=True)

    availability = relationship("StaffAvailability", back_populates="blocks")

    def __repr__(self):
        return f"<ScheduleBlock({self.block_type} {self.block_start_time}-{self.block_end_time})>"
