from .catalog_repository import CatalogRepository
from .schedule_repository import ScheduleRepository
from .booking_repository import BookingRepository
from .hold_repository import HoldRepository

__all__ = [
    "CatalogRepository",
    "ScheduleRepository",
    "BookingRepository",
    "HoldRepository",
]
