"""Pydantic schemas for the provider's weekly job calendar."""

import datetime as dt
from typing import List

from pydantic import BaseModel

from .job import JobRead


class CalendarDay(BaseModel):
    date: dt.date
    jobs: List[JobRead]
    has_time_slots: bool


class CalendarWeek(BaseModel):
    week_start: dt.date
    week_end: dt.date
    previous_week: dt.date
    next_week: dt.date
    days: List[CalendarDay]
