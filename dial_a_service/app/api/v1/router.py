"""
Top-level router for version 1 of the API.

Aggregates the area routers under a unified prefix.  When a new area is
added, include its router here.
"""

from fastapi import APIRouter

from .endpoints import (
    account,
    admin,
    auth,
    calendar,
    jobs,
    onboarding,
    providers,
    realtime,
    slots,
)

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(account.router, prefix="/account", tags=["account"])
# The providers, calendar and slots routers spell out their own paths
# (``/providers/me/...``, ``/skills``, ``/slots``) so no prefix here.
router.include_router(providers.router, tags=["providers"])
router.include_router(calendar.router, tags=["calendar"])
router.include_router(slots.router, tags=["slots"])
router.include_router(onboarding.router, prefix="/onboarding", tags=["onboarding"])
router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
router.include_router(realtime.router, tags=["realtime"])
