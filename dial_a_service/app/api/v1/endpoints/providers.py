"""
Provider endpoints for API v1.

The onboarding forms (basic information, skills, ID document), the
provider profile and picture, the provider dashboard and the
provider's view of their verification.  All ``/providers/me`` routes
act on the signed-in provider.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status

from dial_a_service.app.api.v1.errors import http_error
from dial_a_service.app.core.config import settings
from dial_a_service.app.core.security import require_roles
from dial_a_service.app.schemas.job import JobRead
from dial_a_service.app.schemas.provider import (
    SKILLS,
    BasicInfoUpdate,
    ProviderDashboard,
    ProviderProfileResult,
    ProviderProfileUpdate,
    ProviderRead,
    Skill,
    SkillsUpdate,
    VerificationStatusRead,
)
from dial_a_service.app.services.provider_service import ProviderService
from dial_a_service.app.services.verification_service import VerificationService


router = APIRouter()


async def _read_upload(file: Optional[UploadFile]) -> tuple:
    """Read an upload, stopping one byte past the size limit."""
    if file is None:
        return b"", None
    return await file.read(settings.max_upload_bytes + 1), file.content_type


@router.get("/skills", response_model=List[Skill])
async def list_skills() -> List[Skill]:
    """The skill catalogue, also used as the list of job categories."""
    return [Skill(**skill) for skill in SKILLS]


@router.get("/providers/me", response_model=ProviderRead)
async def get_my_profile(current_user: dict = Depends(require_roles("provider"))) -> ProviderRead:
    try:
        return await ProviderService.get_provider(current_user["user_id"])
    except ValueError as e:
        raise http_error(e)


@router.put("/providers/me", response_model=ProviderProfileResult)
async def update_my_profile(
    data: ProviderProfileUpdate,
    current_user: dict = Depends(require_roles("provider")),
) -> ProviderProfileResult:
    try:
        return await ProviderService.update_profile(current_user["user_id"], data)
    except ValueError as e:
        raise http_error(e)


@router.post("/providers/me/picture", response_model=ProviderRead)
async def upload_profile_picture(
    file: Optional[UploadFile] = File(None),
    current_user: dict = Depends(require_roles("provider")),
) -> ProviderRead:
    content, content_type = await _read_upload(file)
    try:
        return await ProviderService.upload_profile_picture(current_user["user_id"], content, content_type)
    except ValueError as e:
        raise http_error(e)


@router.put("/providers/me/basic-info", response_model=ProviderRead)
async def update_basic_info(
    data: BasicInfoUpdate,
    current_user: dict = Depends(require_roles("provider")),
) -> ProviderRead:
    """Onboarding step one: experience and business details."""
    try:
        return await ProviderService.update_basic_info(current_user["user_id"], data)
    except ValueError as e:
        raise http_error(e)


@router.put("/providers/me/skills", response_model=ProviderRead)
async def update_skills(
    data: SkillsUpdate,
    current_user: dict = Depends(require_roles("provider")),
) -> ProviderRead:
    """Onboarding step two, also used to manage skills later on."""
    try:
        return await ProviderService.update_skills(current_user["user_id"], data)
    except ValueError as e:
        raise http_error(e)


@router.post("/providers/me/id-document", response_model=ProviderRead, status_code=status.HTTP_201_CREATED)
async def upload_id_document(
    file: Optional[UploadFile] = File(None),
    current_user: dict = Depends(require_roles("provider")),
) -> ProviderRead:
    """Onboarding step three: upload a photo of a government-issued ID.

    Uploading a new document clears ``verified`` until an administrator
    has looked at it.
    """
    content, content_type = await _read_upload(file)
    try:
        return await ProviderService.upload_id_document(current_user["user_id"], content, content_type)
    except ValueError as e:
        raise http_error(e)


@router.get("/providers/me/dashboard", response_model=ProviderDashboard)
async def dashboard(current_user: dict = Depends(require_roles("provider"))) -> ProviderDashboard:
    try:
        return await ProviderService.dashboard(current_user["user_id"])
    except ValueError as e:
        raise http_error(e)


@router.get("/providers/me/available-jobs", response_model=List[JobRead])
async def available_jobs(current_user: dict = Depends(require_roles("provider"))) -> List[JobRead]:
    try:
        return await ProviderService.available_jobs(current_user["user_id"])
    except ValueError as e:
        raise http_error(e)


@router.get("/providers/me/verification", response_model=VerificationStatusRead)
async def verification_status(
    current_user: dict = Depends(require_roles("provider")),
) -> VerificationStatusRead:
    try:
        return await VerificationService.get_status(current_user["user_id"])
    except ValueError as e:
        raise http_error(e)


@router.post("/providers/me/verification/request", response_model=VerificationStatusRead)
async def request_verification(
    current_user: dict = Depends(require_roles("provider")),
) -> VerificationStatusRead:
    """Ask an administrator to (re)review the provider."""
    try:
        return await VerificationService.request_verification(current_user["user_id"])
    except ValueError as e:
        raise http_error(e)
