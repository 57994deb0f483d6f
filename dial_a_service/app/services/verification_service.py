"""
Provider verification workflow.

A provider waits in ``pending`` until an administrator reviews them::

    pending -> approved   (verified = true)
    pending -> rejected   (rejection_reason stored)

A rejected provider can ask for another review, which puts them back
in ``pending``.  Each decision is e-mailed to the provider; a failed
e-mail never undoes the decision.
"""

import logging
from datetime import datetime
from typing import List, Optional

from dial_a_service.app.core.db import get_connection
from dial_a_service.app.schemas.provider import (
    ProviderRead,
    VerificationDecision,
    VerificationResult,
    VerificationStatusRead,
)
from dial_a_service.app.services.audit_service import AuditService
from dial_a_service.app.services.email_service import EmailService
from dial_a_service.app.services.provider_service import (
    fetch_provider_row,
    provider_from_row,
    publish_provider,
)


logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Incomplete information"


def verification_redirect(verification_status: str) -> str:
    return "/provider/dashboard" if verification_status == "approved" else "/provider/pending"


def _status_read(provider: ProviderRead) -> VerificationStatusRead:
    return VerificationStatusRead(
        status=provider.verification_status,
        verified=provider.verified,
        rejection_reason=provider.rejection_reason,
        verification_requested_at=provider.verification_requested_at,
        redirect_to=verification_redirect(provider.verification_status),
    )


class VerificationService:
    """Admin review of providers and the provider's view of it."""

    @classmethod
    async def list_pending(cls) -> List[ProviderRead]:
        """Providers that asked for review, oldest request first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                """
                SELECT * FROM providers
                WHERE verification_status = 'pending' AND verification_requested_at IS NOT NULL
                ORDER BY verification_requested_at ASC, id ASC
                """
            ).fetchall()
        finally:
            conn.close()
        return [provider_from_row(row) for row in rows]

    @classmethod
    async def review(cls, provider_id: int, admin_id: Optional[int], decision: VerificationDecision) -> VerificationResult:
        """Approve or reject a pending provider and notify them.

        Raises ``ValueError`` if the provider does not exist or is not
        waiting for review.
        """
        now = datetime.utcnow().isoformat()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = fetch_provider_row(cursor, provider_id)
            if row["verification_status"] != "pending":
                raise ValueError(f"Provider is not pending verification (status: {row['verification_status']})")
            if decision.status == "approved":
                reason = None
                cursor.execute(
                    """
                    UPDATE providers
                    SET verification_status = 'approved', verified = 1, rejection_reason = NULL,
                        reviewed_at = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE id = ?
                    """,
                    (now, provider_id),
                )
            else:
                reason = (decision.reason or "").strip() or DEFAULT_REJECTION_REASON
                cursor.execute(
                    """
                    UPDATE providers
                    SET verification_status = 'rejected', verified = 0, rejection_reason = ?,
                        reviewed_at = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE id = ?
                    """,
                    (reason, now, provider_id),
                )
            conn.commit()
            row = fetch_provider_row(cursor, provider_id)
            user = cursor.execute("SELECT email FROM users WHERE id = ?", (provider_id,)).fetchone()
        finally:
            conn.close()
        provider = provider_from_row(row)
        logger.info("Provider %s %s by admin %s", provider_id, decision.status, admin_id)
        publish_provider(row)
        await AuditService.record(
            user_id=admin_id,
            action="approve" if decision.status == "approved" else "reject",
            object_type="provider",
            object_id=provider_id,
            details={"reason": reason} if reason else None,
        )

        email_sent = False
        if user:
            email_sent = await EmailService.send_verification_email(
                to=user["email"],
                provider_name=provider.full_name,
                business_name=provider.business_name,
                status=decision.status,
                rejection_reason=reason,
            )
        if decision.status == "approved":
            message = "Provider approved"
        else:
            message = "Provider rejected"
        message += " and email notification sent" if email_sent else "; email notification was not sent"
        return VerificationResult(provider=provider, email_sent=email_sent, message=message)

    @classmethod
    async def get_status(cls, provider_id: int) -> VerificationStatusRead:
        conn = get_connection()
        try:
            row = fetch_provider_row(conn.cursor(), provider_id)
        finally:
            conn.close()
        return _status_read(provider_from_row(row))

    @classmethod
    async def request_verification(cls, provider_id: int) -> VerificationStatusRead:
        """Ask for (another) review; verified, approved providers cannot."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = fetch_provider_row(cursor, provider_id)
            if row["verification_status"] == "approved" and row["verified"]:
                raise ValueError("Provider is already approved")
            cursor.execute(
                """
                UPDATE providers
                SET verification_status = 'pending', verification_requested_at = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (datetime.utcnow().isoformat(), provider_id),
            )
            conn.commit()
            row = fetch_provider_row(cursor, provider_id)
        finally:
            conn.close()
        publish_provider(row)
        return _status_read(provider_from_row(row))
