"""Pydantic schemas for the provider onboarding wizard."""

from typing import List, Optional

from pydantic import BaseModel, Field


class OnboardingStepRead(BaseModel):
    index: int
    key: str
    title: str
    complete: bool


class OnboardingState(BaseModel):
    current_step: int
    steps: List[OnboardingStepRead]
    is_first: bool
    is_last: bool
    completed: bool
    message: Optional[str] = None
    redirect_to: Optional[str] = None


class OnboardingGoTo(BaseModel):
    step: int = Field(..., example=1)
