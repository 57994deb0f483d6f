"""
Pydantic schemas for provider availability.

One-off time slots belong to a single date; recurring slots repeat on
a set of weekdays (0 = Sunday ... 6 = Saturday).
"""

import re
import datetime as dt
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


SlotStatus = Literal["available", "unavailable", "reserved"]

TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


def _check_time(value: str) -> str:
    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format")
    return value


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class _SlotWindow(BaseModel):
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def valid_time(cls, v: str) -> str:
        return _check_time(v)

    @model_validator(mode="after")
    def end_after_start(self):
        # HH:MM strings compare chronologically
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class TimeSlotCreate(_SlotWindow):
    date: dt.date = Field(..., example="2024-03-14")
    start_time: str = Field(..., example="09:00")
    end_time: str = Field(..., example="10:00")
    status: SlotStatus = "available"
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def empty_notes(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class TimeSlotUpdate(BaseModel):
    status: Optional[SlotStatus] = None
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def empty_notes(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class TimeSlotRead(BaseModel):
    id: int
    provider_id: int
    start_time: str
    end_time: str
    status: SlotStatus
    notes: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }


class TimeSlotDay(BaseModel):
    """A provider's slots for one day, also grouped by starting hour."""

    date: dt.date
    slots: List[TimeSlotRead]
    by_hour: Dict[str, List[TimeSlotRead]]


def _check_days(days: List[int]) -> List[int]:
    if not days:
        raise ValueError("Please select at least one day")
    if len(set(days)) != len(days):
        raise ValueError("Days of week must be unique")
    for day in days:
        if day < 0 or day > 6:
            raise ValueError("Days of week must be between 0 (Sunday) and 6 (Saturday)")
    return sorted(days)


class RecurringSlotCreate(_SlotWindow):
    start_time: str = Field("09:00", example="09:00")
    end_time: str = Field("17:00", example="17:00")
    days_of_week: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5], example=[1, 2, 3, 4, 5])
    status: SlotStatus = "available"
    notes: Optional[str] = None

    @field_validator("days_of_week")
    @classmethod
    def valid_days(cls, v: List[int]) -> List[int]:
        return _check_days(v)

    @field_validator("notes")
    @classmethod
    def empty_notes(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class RecurringSlotUpdate(BaseModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    days_of_week: Optional[List[int]] = None
    status: Optional[SlotStatus] = None
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def valid_time(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_time(v)

    @field_validator("days_of_week")
    @classmethod
    def valid_days(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        return None if v is None else _check_days(v)

    @field_validator("notes")
    @classmethod
    def empty_notes(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class RecurringSlotRead(BaseModel):
    id: int
    provider_id: int
    start_time: str
    end_time: str
    days_of_week: List[int]
    status: SlotStatus
    notes: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }
