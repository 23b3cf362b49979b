# app/schemas/holds.py
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class HoldCreateRequest(BaseModel):
    """Claim a slot for a checkout session"""
    session_id: str = Field(..., min_length=1, max_length=128)
    staff_id: UUID
    service_id: UUID
    slot_datetime: datetime = Field(..., description="Slot start (ISO 8601 with offset)")

    @field_validator("session_id")
    @classmethod
    def strip_session(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Session id is required")
        return v


class HoldResponse(BaseModel):
    hold_id: str
    session_id: str
    staff_id: str
    service_id: str
    slot_datetime: datetime
    slot_end_datetime: datetime
    expires_at: datetime
    remaining_seconds: int
    staff_name: Optional[str] = None
    service_name: Optional[str] = None

    @classmethod
    def from_hold(cls, hold, now: datetime) -> "HoldResponse":
        return cls(
            hold_id=str(hold.id),
            session_id=hold.session_id,
            staff_id=str(hold.staff_id),
            service_id=str(hold.service_id),
            slot_datetime=hold.slot_datetime,
            slot_end_datetime=hold.slot_end_datetime,
            expires_at=hold.expires_at,
            remaining_seconds=hold.remaining_seconds(now),
            staff_name=hold.staff.name if hold.staff else None,
            service_name=hold.service.name if hold.service else None,
        )
