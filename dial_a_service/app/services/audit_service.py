"""
Audit trail of administrative and workflow actions.

Verification decisions, job acceptance and status changes, and slot
deletions are written to ``audit_logs``.  Only administrators read the
log, through ``GET /admin/audit``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional

from dial_a_service.app.core.db import get_connection


logger = logging.getLogger(__name__)

# Query parameter -> SQL condition for ``list_logs``.
FILTERS = {
    "user_id": "user_id = ?",
    "object_type": "object_type = ?",
    "action": "action = ?",
    "start_date": "timestamp >= ?",
    "end_date": "timestamp < date(?, '+1 day')",
}


def _entry_from_row(row: sqlite3.Row) -> Dict[str, Any]:
    entry = dict(row)
    entry["details"] = json.loads(entry["details"]) if entry["details"] else None
    return entry


class AuditService:
    """Write and read the audit trail."""

    @classmethod
    async def log(
        cls,
        user_id: Optional[int],
        action: str,
        object_type: str,
        object_id: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Append one entry.

        Parameters
        ----------
        user_id : Optional[int]
            Who acted; ``None`` for system actions.
        action : str
            ``approve``, ``reject``, ``accept``, ``status`` or ``delete``.
        object_type : str
            ``provider``, ``job``, ``time_slot`` or ``recurring_slot``.
        object_id : Optional[int]
            Primary key of the affected row.
        details : Optional[dict]
            Extra data, stored as JSON.
        """
        conn = get_connection()
        try:
            conn.execute(
                "INSERT INTO audit_logs (user_id, action, object_type, object_id, details) VALUES (?, ?, ?, ?, ?)",
                (user_id, action, object_type, object_id, json.dumps(details) if details else None),
            )
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def record(cls, *args: Any, **kwargs: Any) -> None:
        """Like :meth:`log`, but a failed write is logged instead of raised.

        Services call this after their own change has been committed so
        that the audit trail never fails the request.
        """
        try:
            await cls.log(*args, **kwargs)
        except sqlite3.Error:
            logger.exception("Failed to write audit record %s %s", args, kwargs)

    @classmethod
    async def list_logs(cls, limit: int = 100, offset: int = 0, **filters: Any) -> List[Dict[str, Any]]:
        """Entries matching ``filters`` (see ``FILTERS``), newest first.

        ``start_date`` and ``end_date`` are ``YYYY-MM-DD`` and both days
        are included.  Filters set to ``None`` are ignored.
        """
        unknown = set(filters) - set(FILTERS)
        if unknown:
            raise ValueError(f"Unknown audit filter: {', '.join(sorted(unknown))}")
        active = {key: value for key, value in filters.items() if value is not None}
        query = "SELECT id, user_id, action, object_type, object_id, timestamp, details FROM audit_logs"
        if active:
            query += " WHERE " + " AND ".join(FILTERS[key] for key in active)
        query += " ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?"
        conn = get_connection()
        try:
            rows = conn.execute(query, (*active.values(), limit, offset)).fetchall()
        finally:
            conn.close()
        return [_entry_from_row(row) for row in rows]
