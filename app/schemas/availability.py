# app/schemas/availability.py
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class AvailableSlotsResponse(BaseModel):
    """Bookable start times for one staff member and service on a local date"""
    staff_id: str
    service_id: str
    date: date
    timezone: str = Field(..., description="Business timezone the date is interpreted in")
    duration_minutes: int
    granularity_minutes: int
    slots: List[datetime] = Field(default_factory=list, description="UTC start times, ascending")


class SlotCheckResponse(BaseModel):
    available: bool
    reason: Optional[str] = None


class AvailableStaffResponse(BaseModel):
    service_id: str
    start_time: datetime
    staff: List[dict] = Field(default_factory=list)
