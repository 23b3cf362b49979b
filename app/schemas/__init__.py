# app/schemas/__init__.py
from .bookings import (
    CustomerInfo,
    BookingCreateRequest,
    HoldConvertRequest,
    BookingUpdateRequest,
    BookingRescheduleRequest,
    BookingResponse
)

from .holds import (
    HoldCreateRequest,
    HoldResponse
)

from .availability import (
    AvailableSlotsResponse,
    SlotCheckResponse,
    AvailableStaffResponse
)

from .schedule import (
    ScheduleBlockInput,
    WorkingHoursInput,
    DayScheduleInput,
    WeeklyScheduleRequest,
    DateOverrideRequest,
    TimeOffRequest
)

__all__ = [
    # Bookings
    "CustomerInfo",
    "BookingCreateRequest",
    "HoldConvertRequest",
    "BookingUpdateRequest",
    "BookingRescheduleRequest",
    "BookingResponse",

    # Holds
    "HoldCreateRequest",
    "HoldResponse",

    # Availability
    "AvailableSlotsResponse",
    "SlotCheckResponse",
    "AvailableStaffResponse",

    # Schedule
    "ScheduleBlockInput",
    "WorkingHoursInput",
    "DayScheduleInput",
    "WeeklyScheduleRequest",
    "DateOverrideRequest",
    "TimeOffRequest",
]
