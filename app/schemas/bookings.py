# app/schemas/bookings.py
"""Customer details and booking request/response schemas"""
import re
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.models.booking import BookingStatus

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CustomerInfo(BaseModel):
    """Customer details collected at checkout"""
    name: str = Field(..., description="Customer full name")
    phone: str = Field(..., description="Customer phone number")
    email: Optional[str] = Field(None, description="Customer email")
    customer_id: Optional[str] = Field(None, description="External customer reference")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Customer name is required")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Phone number must be at least 10 characters")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email address")
        return v


class BookingCreateRequest(BaseModel):
    staff_id: UUID
    service_id: UUID
    slot_datetime: datetime = Field(..., description="Appointment start (ISO 8601 with offset)")
    customer: CustomerInfo
    session_id: Optional[str] = Field(None, description="Checkout session whose hold is consumed")
    notes: Optional[str] = None


class HoldConvertRequest(BaseModel):
    customer: CustomerInfo
    notes: Optional[str] = None


class BookingUpdateRequest(BaseModel):
    status: Optional[BookingStatus] = None
    final_price: Optional[int] = Field(None, ge=0, description="Price in minor currency units")
    notes: Optional[str] = None


class BookingRescheduleRequest(BaseModel):
    """Move a booking; omit staff_id to keep the current staff member"""
    slot_datetime: datetime = Field(..., description="New start (ISO 8601 with offset)")
    staff_id: Optional[UUID] = None


class BookingResponse(BaseModel):
    id: str
    staff_id: str
    service_id: str
    slot_datetime: datetime
    slot_end_datetime: datetime
    duration_minutes: int
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    customer_id: Optional[str] = None
    final_price: int
    status: str
    notes: Optional[str] = None
    staff_name: Optional[str] = None
    service_name: Optional[str] = None
    created_at: Optional[datetime] = None
