"""
Pydantic models for jobs.

Customers post jobs under a skill category; providers accept, decline
and complete them, or schedule jobs directly onto their calendar.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


JobStatus = Literal["pending", "accepted", "completed", "rejected"]


class _TimeWindow(BaseModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @model_validator(mode="after")
    def end_after_start(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class JobCreate(_TimeWindow):
    """Schema for a customer posting a job."""

    category: str = Field(..., example="Plumbing")
    description: str = Field(..., example="Kitchen sink is leaking")
    title: Optional[str] = Field(None, example="Fix kitchen sink")
    price: Optional[float] = Field(None, ge=0, example=150.0)
    # Address the job to one provider instead of posting it to everyone.
    provider_id: Optional[int] = Field(None, example=7)

    @field_validator("category")
    @classmethod
    def known_category(cls, v: str) -> str:
        from .provider import SKILL_NAMES

        if v not in SKILL_NAMES:
            raise ValueError(f"Unknown category: {v}")
        return v

    @field_validator("description")
    @classmethod
    def description_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please describe the job")
        return v


class JobSchedule(_TimeWindow):
    """Schema for a provider scheduling a job on their calendar."""

    title: str = Field(..., example="Plumbing Repair")
    description: str = Field("", example="Replace the geyser valve")
    start_time: datetime
    end_time: datetime
    price: float = Field(0, ge=0, example=100.0)
    category: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter a job title")
        return v


class JobStatusUpdate(BaseModel):
    status: Literal["accepted", "rejected", "completed"]


class JobRating(BaseModel):
    rating: int = Field(..., ge=1, le=5)


class JobRead(BaseModel):
    id: int
    customer_id: Optional[int] = None
    provider_id: Optional[int] = None
    category: Optional[str] = None
    title: Optional[str] = None
    description: str
    status: JobStatus
    price: Optional[float] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    rating: Optional[int] = None
    created_at: datetime
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }
