"""
Availability endpoints for API v1.

One-off time slots live under ``/slots`` and weekly recurring slots
under ``/recurring-slots``.  Providers only see and change their own.
"""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Path, Query, Response, status

from dial_a_service.app.api.v1.errors import http_error
from dial_a_service.app.core.security import require_roles
from dial_a_service.app.schemas.slot import (
    RecurringSlotCreate,
    RecurringSlotRead,
    RecurringSlotUpdate,
    TimeSlotCreate,
    TimeSlotDay,
    TimeSlotRead,
    TimeSlotUpdate,
)
from dial_a_service.app.services.slot_service import SlotService


router = APIRouter()


@router.get("/slots", response_model=TimeSlotDay)
async def list_slots(
    day: date = Query(..., alias="date", description="Day to list (YYYY-MM-DD)"),
    current_user: dict = Depends(require_roles("provider")),
) -> TimeSlotDay:
    return await SlotService.list_slots(current_user["user_id"], day)


@router.post("/slots", response_model=TimeSlotRead, status_code=status.HTTP_201_CREATED)
async def create_slot(
    data: TimeSlotCreate,
    current_user: dict = Depends(require_roles("provider")),
) -> TimeSlotRead:
    try:
        return await SlotService.create_slot(current_user["user_id"], data)
    except ValueError as e:
        raise http_error(e)


@router.patch("/slots/{slot_id}", response_model=TimeSlotRead)
async def update_slot(
    data: TimeSlotUpdate,
    slot_id: int = Path(..., description="ID of the time slot"),
    current_user: dict = Depends(require_roles("provider")),
) -> TimeSlotRead:
    """Change a slot's status or notes; empty notes clear them."""
    try:
        return await SlotService.update_slot(slot_id, current_user["user_id"], data)
    except (ValueError, PermissionError) as e:
        raise http_error(e)


@router.delete("/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(
    slot_id: int = Path(..., description="ID of the time slot"),
    current_user: dict = Depends(require_roles("provider")),
) -> Response:
    try:
        await SlotService.delete_slot(slot_id, current_user["user_id"])
    except (ValueError, PermissionError) as e:
        raise http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/recurring-slots", response_model=List[RecurringSlotRead])
async def list_recurring_slots(current_user: dict = Depends(require_roles("provider"))) -> List[RecurringSlotRead]:
    return await SlotService.list_recurring(current_user["user_id"])


@router.post("/recurring-slots", response_model=RecurringSlotRead, status_code=status.HTTP_201_CREATED)
async def create_recurring_slot(
    data: RecurringSlotCreate,
    current_user: dict = Depends(require_roles("provider")),
) -> RecurringSlotRead:
    """Add a weekly slot; defaults to 09:00-17:00 Monday to Friday."""
    try:
        return await SlotService.create_recurring(current_user["user_id"], data)
    except ValueError as e:
        raise http_error(e)


@router.patch("/recurring-slots/{slot_id}", response_model=RecurringSlotRead)
async def update_recurring_slot(
    data: RecurringSlotUpdate,
    slot_id: int = Path(..., description="ID of the recurring slot"),
    current_user: dict = Depends(require_roles("provider")),
) -> RecurringSlotRead:
    try:
        return await SlotService.update_recurring(slot_id, current_user["user_id"], data)
    except (ValueError, PermissionError) as e:
        raise http_error(e)


@router.delete("/recurring-slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recurring_slot(
    slot_id: int = Path(..., description="ID of the recurring slot"),
    current_user: dict = Depends(require_roles("provider")),
) -> Response:
    try:
        await SlotService.delete_recurring(slot_id, current_user["user_id"])
    except (ValueError, PermissionError) as e:
        raise http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
