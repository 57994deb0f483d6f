"""
Weekly calendar of a provider's jobs.

Weeks start on Sunday.  A job belongs to the day its ``start_time``
falls on; the week is the half-open range ``[sunday, next sunday)`` so
jobs on Saturday are included.
"""

from datetime import date, timedelta
from typing import Set

from dial_a_service.app.core.db import get_connection
from dial_a_service.app.schemas.calendar import CalendarDay, CalendarWeek
from dial_a_service.app.services.job_service import JOB_SELECT, job_from_row


def week_start(day: date) -> date:
    """Return the Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


class CalendarService:
    @classmethod
    async def week(cls, provider_id: int, day: date) -> CalendarWeek:
        start = week_start(day)
        end = start + timedelta(days=7)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            job_rows = cursor.execute(
                JOB_SELECT
                + " WHERE j.provider_id = ? AND j.start_time >= ? AND j.start_time < ?"
                " ORDER BY j.start_time, j.id",
                (provider_id, f"{start.isoformat()} 00:00:00", f"{end.isoformat()} 00:00:00"),
            ).fetchall()
            slot_rows = cursor.execute(
                "SELECT start_time FROM time_slots WHERE provider_id = ? AND start_time >= ? AND start_time < ?",
                (provider_id, f"{start.isoformat()} 00:00", f"{end.isoformat()} 00:00"),
            ).fetchall()
        finally:
            conn.close()
        jobs = [job_from_row(row) for row in job_rows]
        slot_days: Set[str] = {row["start_time"][:10] for row in slot_rows}
        days = []
        for offset in range(7):
            current = start + timedelta(days=offset)
            days.append(
                CalendarDay(
                    date=current,
                    jobs=[job for job in jobs if job.start_time and job.start_time.date() == current],
                    has_time_slots=current.isoformat() in slot_days,
                )
            )
        return CalendarWeek(
            week_start=start,
            week_end=end - timedelta(days=1),
            previous_week=start - timedelta(days=7),
            next_week=end,
            days=days,
        )
