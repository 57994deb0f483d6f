"""Account completion endpoint for API v1."""

from fastapi import APIRouter, Depends

from dial_a_service.app.api.v1.errors import http_error
from dial_a_service.app.core.security import get_current_user
from dial_a_service.app.schemas.user import AccountProfileResult, AccountProfileUpdate
from dial_a_service.app.services.user_service import UserService


router = APIRouter()


@router.put("/profile", response_model=AccountProfileResult)
async def complete_profile(
    data: AccountProfileUpdate,
    current_user: dict = Depends(get_current_user),
) -> AccountProfileResult:
    """Complete the account profile and choose a role.

    Providers continue to onboarding, customers to their dashboard.
    """
    try:
        return await UserService.complete_profile(current_user["user_id"], data)
    except ValueError as e:
        raise http_error(e)
