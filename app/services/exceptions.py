"""
Exception types for the booking core.
Callers branch on the class; every error carries a user-facing message.
"""
from typing import Dict, List, Optional


class BookingSystemError(Exception):
    """Base exception for booking, hold and availability operations."""

    error_code = "booking_error"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason

    def to_dict(self) -> Dict:
        data = {"error": self.error_code, "message": self.message}
        if self.reason:
            data["reason"] = self.reason
        return data


class BookingValidationError(BookingSystemError):
    """Raised when input is malformed or out of range."""

    error_code = "validation_error"


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------

class NotFoundError(BookingSystemError):
    error_code = "not_found"


class StaffNotFoundError(NotFoundError):
    error_code = "staff_not_found"

    def __init__(self, message: str = "Staff member not found"):
        super().__init__(message)


class ServiceNotFoundError(NotFoundError):
    error_code = "service_not_found"

    def __init__(self, message: str = "Service not found"):
        super().__init__(message)


class HoldNotFoundError(NotFoundError):
    error_code = "hold_not_found"

    def __init__(self, message: str = "Hold not found or has expired"):
        super().__init__(message)


class HoldExpiredError(HoldNotFoundError):
    error_code = "hold_expired"

    def __init__(self, message: str = "Your hold has expired. Please select a new time slot to continue booking."):
        super().__init__(message)


class BookingNotFoundError(NotFoundError):
    error_code = "booking_not_found"

    def __init__(self, message: str = "Booking not found"):
        super().__init__(message)


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------

class ConflictError(BookingSystemError):
    error_code = "conflict"


class SlotConflictError(ConflictError):
    """Slot already booked or held by another customer."""

    error_code = "slot_conflict"


class StaffIneligibleError(ConflictError):
    error_code = "staff_ineligible"

    def __init__(self, message: str = "Staff member cannot perform this service"):
        super().__init__(message)


class StaffUnavailableError(ConflictError):
    error_code = "staff_unavailable"


class ScheduleConflictError(ConflictError):
    """Schedule edit would orphan existing future bookings."""

    error_code = "schedule_conflict"

    def __init__(self, conflicts: List[str], message: str = "Schedule change conflicts with existing bookings"):
        super().__init__(message)
        self.conflicts = conflicts

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["conflicts"] = self.conflicts
        return data


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

class AvailabilityLookupError(BookingSystemError):
    """Raised when the stores cannot be read; callers must treat it as no availability."""

    error_code = "availability_lookup_failed"

    def __init__(self, message: str = "Availability lookup failed"):
        super().__init__(message)
