"""
Administration endpoints for API v1.

Provider verification review and the audit log.  Every route requires
the ``admin`` role.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from dial_a_service.app.api.v1.errors import http_error
from dial_a_service.app.core.security import require_roles
from dial_a_service.app.schemas.audit import AuditLogRead
from dial_a_service.app.schemas.provider import ProviderRead, VerificationDecision, VerificationResult
from dial_a_service.app.services.audit_service import AuditService
from dial_a_service.app.services.verification_service import VerificationService


router = APIRouter()


@router.get("/providers/pending", response_model=List[ProviderRead])
async def pending_providers(current_user: dict = Depends(require_roles("admin"))) -> List[ProviderRead]:
    """Providers waiting for review, oldest request first."""
    return await VerificationService.list_pending()


@router.post("/providers/{provider_id}/verification", response_model=VerificationResult)
async def review_provider(
    decision: VerificationDecision,
    provider_id: int = Path(..., description="ID of the provider"),
    current_user: dict = Depends(require_roles("admin")),
) -> VerificationResult:
    """Approve or reject a pending provider and e-mail them the outcome.

    A rejection without a reason is stored as "Incomplete information".
    """
    try:
        return await VerificationService.review(provider_id, current_user["user_id"], decision)
    except ValueError as e:
        raise http_error(e)


@router.get("/audit", response_model=List[AuditLogRead])
async def list_audit_logs(
    user_id: Optional[int] = Query(None, description="Filter by user ID"),
    object_type: Optional[str] = Query(None, description="Filter by object type"),
    action: Optional[str] = Query(None, description="Filter by action"),
    start_date: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of records"),
    offset: int = Query(0, ge=0, description="Offset for pagination"),
    current_user: dict = Depends(require_roles("admin")),
) -> List[AuditLogRead]:
    logs = await AuditService.list_logs(
        user_id=user_id,
        object_type=object_type,
        action=action,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return [AuditLogRead(**log) for log in logs]
