"""
Business logic for service providers.

Covers the onboarding forms (basic information, skills and the ID
document), the editable profile with its picture, and the data shown
on the provider dashboard.  Every write to the ``providers`` table is
published to the realtime hub so open dashboards refresh.
"""

import json
import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from dial_a_service.app.core import storage
from dial_a_service.app.core.db import get_connection
from dial_a_service.app.core.realtime import hub
from dial_a_service.app.schemas.job import JobRead
from dial_a_service.app.schemas.provider import (
    BasicInfoUpdate,
    ProviderDashboard,
    ProviderProfileResult,
    ProviderProfileUpdate,
    ProviderRead,
    ProviderStats,
    SkillsUpdate,
)
from dial_a_service.app.services.job_service import JOB_SELECT, job_from_row


logger = logging.getLogger(__name__)

RECENT_JOBS_LIMIT = 10


def provider_from_row(row: sqlite3.Row) -> ProviderRead:
    data = dict(row)
    data["skills"] = json.loads(data.get("skills") or "[]")
    data["verified"] = bool(data.get("verified"))
    return ProviderRead(**{k: v for k, v in data.items() if k in ProviderRead.model_fields})


def fetch_provider_row(cursor: sqlite3.Cursor, provider_id: int) -> sqlite3.Row:
    """Return the provider row or raise ``ValueError`` if there is none."""
    row = cursor.execute("SELECT * FROM providers WHERE id = ?", (provider_id,)).fetchone()
    if not row:
        raise ValueError("Provider profile not found")
    return row


def publish_provider(row: sqlite3.Row) -> None:
    hub.publish("providers", "UPDATE", new=provider_from_row(row).model_dump(mode="json"))


class ProviderService:
    """Service for provider profiles, onboarding forms and the dashboard."""

    @classmethod
    async def get_provider(cls, provider_id: int) -> ProviderRead:
        conn = get_connection()
        try:
            return provider_from_row(fetch_provider_row(conn.cursor(), provider_id))
        finally:
            conn.close()

    @classmethod
    async def _update(cls, provider_id: int, fields: dict) -> ProviderRead:
        """Apply ``fields`` to the provider row, publish and return it."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            fetch_provider_row(cursor, provider_id)
            assignments = ", ".join(f"{key} = ?" for key in fields)
            cursor.execute(
                f"UPDATE providers SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (*fields.values(), provider_id),
            )
            conn.commit()
            row = fetch_provider_row(cursor, provider_id)
        finally:
            conn.close()
        publish_provider(row)
        return provider_from_row(row)

    @classmethod
    async def update_basic_info(cls, provider_id: int, data: BasicInfoUpdate) -> ProviderRead:
        return await cls._update(
            provider_id,
            {
                "years_experience": data.years_experience,
                "business_name": data.business_name,
                "business_email": data.business_email,
            },
        )

    @classmethod
    async def update_skills(cls, provider_id: int, data: SkillsUpdate) -> ProviderRead:
        return await cls._update(provider_id, {"skills": json.dumps(data.skills)})

    @classmethod
    async def upload_id_document(
        cls, provider_id: int, content: bytes, content_type: Optional[str]
    ) -> ProviderRead:
        """Store the provider's government ID and reset verification.

        The file always lands at ``provider-ids/id-{provider_id}.jpg``
        and replaces any earlier upload.  A new document has to be
        reviewed again, so ``verified`` is cleared and an approved
        provider goes back into the review queue.
        """
        if not content:
            raise ValueError("Please select an ID document")
        storage.validate_image(content_type, len(content))
        # Fail before touching storage if there is no provider row.
        provider = await cls.get_provider(provider_id)
        path = f"id-{provider_id}.jpg"
        storage.upload(storage.PROVIDER_IDS_BUCKET, path, content, content_type=content_type, upsert=True)
        url = storage.public_url(storage.PROVIDER_IDS_BUCKET, path)
        logger.info("Provider %s uploaded an ID document", provider_id)
        fields = {"id_url": url, "verified": 0}
        if provider.verification_status == "approved":
            fields["verification_status"] = "pending"
            fields["verification_requested_at"] = datetime.utcnow().isoformat()
        return await cls._update(provider_id, fields)

    @classmethod
    async def update_profile(cls, provider_id: int, data: ProviderProfileUpdate) -> ProviderProfileResult:
        """Save the profile form; fields left out of the request are kept."""
        provider = await cls._update(provider_id, data.model_dump(exclude_unset=True))
        return ProviderProfileResult(provider=provider, redirect_to="/provider/dashboard")

    @classmethod
    async def upload_profile_picture(
        cls, provider_id: int, content: bytes, content_type: Optional[str]
    ) -> ProviderRead:
        if not content:
            raise ValueError("Please select a picture")
        storage.validate_image(content_type, len(content))
        await cls.get_provider(provider_id)
        path = f"profile-{provider_id}.jpg"
        storage.upload(storage.PROVIDER_PROFILES_BUCKET, path, content, content_type=content_type, upsert=True)
        url = storage.public_url(storage.PROVIDER_PROFILES_BUCKET, path)
        return await cls._update(provider_id, {"profile_picture_url": url})

    @classmethod
    async def dashboard(cls, provider_id: int) -> ProviderDashboard:
        """Job statistics and the most recent jobs of a provider.

        Earnings are the sum of the prices of completed jobs; the
        average rating only counts rated jobs.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            fetch_provider_row(cursor, provider_id)
            stats_row = cursor.execute(
                """
                SELECT COUNT(*) AS total_jobs,
                       COALESCE(SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END), 0) AS completed_jobs,
                       COALESCE(SUM(CASE WHEN status = 'completed' THEN COALESCE(price, 0) ELSE 0 END), 0) AS total_earnings,
                       AVG(rating) AS average_rating
                FROM jobs WHERE provider_id = ?
                """,
                (provider_id,),
            ).fetchone()
            rows = cursor.execute(
                JOB_SELECT + " WHERE j.provider_id = ? ORDER BY j.created_at DESC, j.id DESC LIMIT ?",
                (provider_id, RECENT_JOBS_LIMIT),
            ).fetchall()
        finally:
            conn.close()
        stats = ProviderStats(
            total_jobs=stats_row["total_jobs"],
            completed_jobs=stats_row["completed_jobs"],
            total_earnings=float(stats_row["total_earnings"]),
            average_rating=round(float(stats_row["average_rating"] or 0), 2),
        )
        return ProviderDashboard(stats=stats, jobs=[job_from_row(row) for row in rows])

    @classmethod
    async def available_jobs(cls, provider_id: int) -> List[JobRead]:
        """Open jobs in the provider's skill categories, oldest first."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            provider = provider_from_row(fetch_provider_row(cursor, provider_id))
            if not provider.skills:
                return []
            placeholders = ", ".join("?" for _ in provider.skills)
            rows = cursor.execute(
                JOB_SELECT
                + f" WHERE j.status = 'pending' AND j.provider_id IS NULL AND j.category IN ({placeholders})"
                " ORDER BY j.created_at ASC, j.id ASC",
                tuple(provider.skills),
            ).fetchall()
        finally:
            conn.close()
        return [job_from_row(row) for row in rows]
