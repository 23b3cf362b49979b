# app/schemas/schedule.py
"""
Schedule edit payloads. Times are local wall-clock "HH:MM" strings in the
business timezone.
"""
from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.availability import BlockType, DayOfWeek
from app.utils.business_time import parse_hhmm


def _validate_hhmm(v: str) -> str:
    parse_hhmm(v)
    return v.strip()


class ScheduleBlockInput(BaseModel):
    """Lunch, break or other non-bookable interval inside a working day"""
    block_start_time: str = Field(..., description="Block start (HH:MM)")
    block_end_time: str = Field(..., description="Block end (HH:MM)")
    block_type: BlockType = Field(BlockType.BREAK)
    title: str = Field(..., min_length=1, max_length=200)
    is_recurring: bool = True

    @field_validator("block_start_time", "block_end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _validate_hhmm(v)

    @model_validator(mode="after")
    def end_after_start(self):
        if parse_hhmm(self.block_end_time) <= parse_hhmm(self.block_start_time):
            raise ValueError("Block end time must be after start time")
        return self


class WorkingHoursInput(BaseModel):
    start_time: str = Field(..., description="Start (HH:MM)")
    end_time: str = Field(..., description="End (HH:MM)")
    blocks: List[ScheduleBlockInput] = Field(default_factory=list)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _validate_hhmm(v)

    @model_validator(mode="after")
    def blocks_inside_hours(self):
        start = parse_hhmm(self.start_time)
        end = parse_hhmm(self.end_time)
        if end <= start:
            raise ValueError("End time must be after start time")
        for block in self.blocks:
            if parse_hhmm(block.block_start_time) < start or parse_hhmm(block.block_end_time) > end:
                raise ValueError(f"Block '{block.title}' must fall within working hours")
        return self


class DayScheduleInput(WorkingHoursInput):
    """Weekly rule for one day. is_available=False removes the rule."""
    day_of_week: DayOfWeek
    is_available: bool = True
    start_time: str = "09:00"
    end_time: str = "17:00"

    @field_validator("day_of_week", mode="before")
    @classmethod
    def parse_day(cls, v: Union[str, int]) -> int:
        if isinstance(v, str) and not v.isdigit():
            try:
                return DayOfWeek[v.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown day of week: {v}")
        return int(v)


class WeeklyScheduleRequest(BaseModel):
    days: List[DayScheduleInput] = Field(..., min_length=1)
    force: bool = Field(False, description="Apply even if existing bookings fall outside the new hours")

    @field_validator("days")
    @classmethod
    def unique_days(cls, v: List[DayScheduleInput]) -> List[DayScheduleInput]:
        seen = [day.day_of_week for day in v]
        if len(seen) != len(set(seen)):
            raise ValueError("Each day of week may appear only once")
        return v


class DateOverrideRequest(WorkingHoursInput):
    """Special hours for one date"""
    reason: Optional[str] = Field(None, max_length=200)
    force: bool = False


class TimeOffRequest(BaseModel):
    start_date: date
    end_date: date
    reason: Optional[str] = Field("Time off", max_length=200)
    force: bool = False

    @model_validator(mode="after")
    def end_not_before_start(self):
        if self.end_date < self.start_date:
            raise ValueError("End date must not be before start date")
        if (self.end_date - self.start_date).days > 366:
            raise ValueError("Time off range cannot exceed one year")
        return self
