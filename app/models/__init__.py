# app/models/__init__.py
from .base import Base, UTCDateTime
from .service import Service
from .staff import Staff, StaffServicePricing, staff_services
from .availability import StaffAvailability, ScheduleBlock, DayOfWeek, BlockType
from .booking import Booking, BookingStatus
from .booking_hold import BookingHold
from .hold_analytics import HoldAnalytics

__all__ = [
    "Base",
    "UTCDateTime",
    "Service",
    "Staff",
    "StaffServicePricing",
    "staff_services",
    "StaffAvailability",
    "ScheduleBlock",
    "DayOfWeek",
    "BlockType",
    "Booking",
    "BookingStatus",
    "BookingHold",
    "HoldAnalytics",
]
