"""Provider calendar endpoint for API v1."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from dial_a_service.app.core.security import require_roles
from dial_a_service.app.schemas.calendar import CalendarWeek
from dial_a_service.app.services.calendar_service import CalendarService


router = APIRouter()


@router.get("/providers/me/calendar", response_model=CalendarWeek)
async def week_calendar(
    day: Optional[date] = Query(None, alias="date", description="Any day of the week to show; defaults to today"),
    current_user: dict = Depends(require_roles("provider")),
) -> CalendarWeek:
    """The provider's jobs for the Sunday-started week containing ``date``."""
    return await CalendarService.week(current_user["user_id"], day or date.today())
