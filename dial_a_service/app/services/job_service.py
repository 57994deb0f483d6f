"""
Business logic for jobs.

Customers post jobs and rate them once completed.  Providers pick up
open jobs in their categories, move them through the status workflow
and schedule jobs directly onto their calendar.

Job status transitions::

    pending  -> accepted | rejected
    accepted -> completed

Only the assigned provider may change a job's status.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from dial_a_service.app.core.db import get_connection
from dial_a_service.app.core.realtime import hub
from dial_a_service.app.schemas.job import JobCreate, JobRead, JobSchedule
from dial_a_service.app.services.audit_service import AuditService


logger = logging.getLogger(__name__)

JOB_SELECT = (
    "SELECT j.*, u.full_name AS customer_name, u.phone AS customer_phone "
    "FROM jobs j LEFT JOIN users u ON u.id = j.customer_id"
)

TRANSITIONS: Dict[str, Set[str]] = {
    "pending": {"accepted", "rejected"},
    "accepted": {"completed"},
    "completed": set(),
    "rejected": set(),
}

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Store datetimes as naive UTC text so they sort and compare as strings."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime(TIMESTAMP_FORMAT)


def job_from_row(row: sqlite3.Row) -> JobRead:
    data = dict(row)
    return JobRead(**{k: v for k, v in data.items() if k in JobRead.model_fields})


def _fetch_job(cursor: sqlite3.Cursor, job_id: int) -> sqlite3.Row:
    row = cursor.execute(JOB_SELECT + " WHERE j.id = ?", (job_id,)).fetchone()
    if not row:
        raise ValueError(f"Job {job_id} not found")
    return row


def _publish(event: str, job: JobRead) -> None:
    hub.publish("jobs", event, new=job.model_dump(mode="json"))


class JobService:
    """Service for posting, taking and completing jobs."""

    @classmethod
    async def get_job(cls, job_id: int) -> JobRead:
        conn = get_connection()
        try:
            return job_from_row(_fetch_job(conn.cursor(), job_id))
        finally:
            conn.close()

    @classmethod
    async def create_job(cls, customer_id: int, data: JobCreate) -> JobRead:
        """Post a new job; it starts ``pending``.

        Without ``provider_id`` the job is open to every provider with
        the matching skill.  With it, the job is assigned to that
        provider, who then accepts or declines it.  Raises ``ValueError``
        if that provider does not exist or is not verified.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if data.provider_id is not None:
                provider = cursor.execute(
                    "SELECT verified FROM providers WHERE id = ?", (data.provider_id,)
                ).fetchone()
                if not provider:
                    raise ValueError(f"Provider {data.provider_id} not found")
                if not provider["verified"]:
                    raise ValueError("This provider is not accepting jobs yet")
            cursor.execute(
                """
                INSERT INTO jobs (customer_id, provider_id, category, title, description, status, price, start_time, end_time)
                VALUES (?, ?, ?, ?, ?, 'pending', ?, ?, ?)
                """,
                (
                    customer_id,
                    data.provider_id,
                    data.category,
                    data.title,
                    data.description,
                    data.price,
                    format_timestamp(data.start_time),
                    format_timestamp(data.end_time),
                ),
            )
            conn.commit()
            job = job_from_row(_fetch_job(cursor, cursor.lastrowid))
        finally:
            conn.close()
        logger.info("Customer %s posted job %s (%s)", customer_id, job.id, job.category)
        _publish("INSERT", job)
        return job

    @classmethod
    async def list_customer_jobs(cls, customer_id: int) -> List[JobRead]:
        conn = get_connection()
        try:
            rows = conn.execute(
                JOB_SELECT + " WHERE j.customer_id = ? ORDER BY j.created_at DESC, j.id DESC",
                (customer_id,),
            ).fetchall()
        finally:
            conn.close()
        return [job_from_row(row) for row in rows]

    @classmethod
    async def accept_job(cls, job_id: int, provider_id: int) -> JobRead:
        """Assign an open job to a verified provider.

        A job addressed to this provider can be accepted here as well.

        Raises ``PermissionError`` for unverified providers and
        ``ValueError`` if the job is missing or already taken.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            provider = cursor.execute("SELECT verified FROM providers WHERE id = ?", (provider_id,)).fetchone()
            if not provider:
                raise ValueError("Provider profile not found")
            if not provider["verified"]:
                raise PermissionError("Only verified providers can accept jobs")
            _fetch_job(cursor, job_id)
            cursor.execute(
                """
                UPDATE jobs SET provider_id = ?, status = 'accepted', updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND status = 'pending' AND (provider_id IS NULL OR provider_id = ?)
                """,
                (provider_id, job_id, provider_id),
            )
            if cursor.rowcount == 0:
                raise ValueError("Job is no longer available")
            conn.commit()
            job = job_from_row(_fetch_job(cursor, job_id))
        finally:
            conn.close()
        logger.info("Provider %s accepted job %s", provider_id, job_id)
        _publish("UPDATE", job)
        await AuditService.record(
            user_id=provider_id, action="accept", object_type="job", object_id=job_id
        )
        return job

    @classmethod
    async def update_status(cls, job_id: int, provider_id: int, new_status: str) -> JobRead:
        """Move a job along the status workflow.

        Raises ``PermissionError`` if the job is not assigned to
        ``provider_id`` and ``ValueError`` for illegal transitions.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = _fetch_job(cursor, job_id)
            if row["provider_id"] != provider_id:
                raise PermissionError("You can only update your own jobs")
            old_status = row["status"]
            if new_status not in TRANSITIONS.get(old_status, set()):
                raise ValueError(f"Cannot change job status from {old_status} to {new_status}")
            cursor.execute(
                "UPDATE jobs SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (new_status, job_id),
            )
            conn.commit()
            job = job_from_row(_fetch_job(cursor, job_id))
        finally:
            conn.close()
        _publish("UPDATE", job)
        await AuditService.record(
            user_id=provider_id,
            action="status",
            object_type="job",
            object_id=job_id,
            details={"from": old_status, "to": new_status},
        )
        return job

    @classmethod
    async def rate_job(cls, job_id: int, customer_id: int, rating: int) -> JobRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = _fetch_job(cursor, job_id)
            if row["customer_id"] != customer_id:
                raise PermissionError("You can only rate your own jobs")
            if row["status"] != "completed":
                raise ValueError("Only completed jobs can be rated")
            cursor.execute(
                "UPDATE jobs SET rating = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (rating, job_id),
            )
            conn.commit()
            job = job_from_row(_fetch_job(cursor, job_id))
        finally:
            conn.close()
        _publish("UPDATE", job)
        return job

    @classmethod
    async def schedule_job(cls, provider_id: int, data: JobSchedule) -> JobRead:
        """Create a job straight on the provider's calendar, already accepted."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if not cursor.execute("SELECT id FROM providers WHERE id = ?", (provider_id,)).fetchone():
                raise ValueError("Provider profile not found")
            cursor.execute(
                """
                INSERT INTO jobs (provider_id, category, title, description, status, price, start_time, end_time)
                VALUES (?, ?, ?, ?, 'accepted', ?, ?, ?)
                """,
                (
                    provider_id,
                    data.category,
                    data.title,
                    data.description,
                    data.price,
                    format_timestamp(data.start_time),
                    format_timestamp(data.end_time),
                ),
            )
            conn.commit()
            job = job_from_row(_fetch_job(cursor, cursor.lastrowid))
        finally:
            conn.close()
        _publish("INSERT", job)
        return job
