"""
Job endpoints for API v1.

Customers post and rate jobs; providers accept open jobs, move them
through their status workflow and schedule jobs onto their calendar.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status

from dial_a_service.app.api.v1.errors import http_error
from dial_a_service.app.core.security import get_current_user, require_roles
from dial_a_service.app.schemas.job import JobCreate, JobRating, JobRead, JobSchedule, JobStatusUpdate
from dial_a_service.app.services.job_service import JobService


router = APIRouter()


@router.post("", response_model=JobRead, status_code=status.HTTP_201_CREATED)
async def create_job(
    data: JobCreate,
    current_user: dict = Depends(require_roles("customer")),
) -> JobRead:
    """Post a new job; it waits as ``pending`` until a provider takes it.

    With ``provider_id`` the job goes to that provider only, who accepts
    or declines it.
    """
    try:
        return await JobService.create_job(current_user["user_id"], data)
    except ValueError as e:
        raise http_error(e)


@router.get("/mine", response_model=List[JobRead])
async def my_jobs(current_user: dict = Depends(require_roles("customer"))) -> List[JobRead]:
    """The customer's jobs, newest first."""
    return await JobService.list_customer_jobs(current_user["user_id"])


@router.post("/schedule", response_model=JobRead, status_code=status.HTTP_201_CREATED)
async def schedule_job(
    data: JobSchedule,
    current_user: dict = Depends(require_roles("provider")),
) -> JobRead:
    try:
        return await JobService.schedule_job(current_user["user_id"], data)
    except ValueError as e:
        raise http_error(e)


@router.get("/{job_id}", response_model=JobRead)
async def get_job(
    job_id: int = Path(..., description="ID of the job"),
    current_user: dict = Depends(get_current_user),
) -> JobRead:
    """A single job, visible to its customer, its provider and admins."""
    try:
        job = await JobService.get_job(job_id)
    except ValueError as e:
        raise http_error(e)
    user_id = current_user.get("user_id")
    if current_user.get("role") != "admin" and user_id not in (job.customer_id, job.provider_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions to view this job")
    return job


@router.post("/{job_id}/accept", response_model=JobRead)
async def accept_job(
    job_id: int = Path(..., description="ID of the job"),
    current_user: dict = Depends(require_roles("provider")),
) -> JobRead:
    """Take an open job.  Only verified providers may accept jobs."""
    try:
        return await JobService.accept_job(job_id, current_user["user_id"])
    except (ValueError, PermissionError) as e:
        raise http_error(e)


@router.post("/{job_id}/status", response_model=JobRead)
async def update_job_status(
    data: JobStatusUpdate,
    job_id: int = Path(..., description="ID of the job"),
    current_user: dict = Depends(require_roles("provider")),
) -> JobRead:
    """Accept, decline or complete a job assigned to the provider."""
    try:
        return await JobService.update_status(job_id, current_user["user_id"], data.status)
    except (ValueError, PermissionError) as e:
        raise http_error(e)


@router.post("/{job_id}/rating", response_model=JobRead)
async def rate_job(
    data: JobRating,
    job_id: int = Path(..., description="ID of the job"),
    current_user: dict = Depends(require_roles("customer")),
) -> JobRead:
    try:
        return await JobService.rate_job(job_id, current_user["user_id"], data.rating)
    except (ValueError, PermissionError) as e:
        raise http_error(e)
