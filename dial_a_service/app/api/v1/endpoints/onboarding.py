"""
Onboarding wizard endpoints for API v1.

The wizard cursor lives on the server so a provider can leave and
resume onboarding.  Moving past an unfinished step answers 400 with the
step's message.
"""

from fastapi import APIRouter, Depends

from dial_a_service.app.api.v1.errors import http_error
from dial_a_service.app.core.security import require_roles
from dial_a_service.app.schemas.onboarding import OnboardingGoTo, OnboardingState
from dial_a_service.app.services.onboarding_service import OnboardingService


router = APIRouter()


@router.get("", response_model=OnboardingState)
async def get_state(current_user: dict = Depends(require_roles("provider"))) -> OnboardingState:
    try:
        return await OnboardingService.get_state(current_user["user_id"])
    except ValueError as e:
        raise http_error(e)


@router.post("/next", response_model=OnboardingState)
async def next_step(current_user: dict = Depends(require_roles("provider"))) -> OnboardingState:
    try:
        return await OnboardingService.next_step(current_user["user_id"])
    except ValueError as e:
        raise http_error(e)


@router.post("/back", response_model=OnboardingState)
async def previous_step(current_user: dict = Depends(require_roles("provider"))) -> OnboardingState:
    try:
        return await OnboardingService.previous_step(current_user["user_id"])
    except ValueError as e:
        raise http_error(e)


@router.post("/goto", response_model=OnboardingState)
async def go_to_step(
    data: OnboardingGoTo,
    current_user: dict = Depends(require_roles("provider")),
) -> OnboardingState:
    try:
        return await OnboardingService.go_to_step(current_user["user_id"], data.step)
    except ValueError as e:
        raise http_error(e)


@router.post("/complete", response_model=OnboardingState)
async def complete(current_user: dict = Depends(require_roles("provider"))) -> OnboardingState:
    """Finish onboarding and queue the provider for verification."""
    try:
        return await OnboardingService.complete(current_user["user_id"])
    except ValueError as e:
        raise http_error(e)
