"""
Business logic for provider availability.

One-off time slots are stored with ``YYYY-MM-DD HH:MM`` start and end
times; recurring slots store ``HH:MM`` times and a JSON list of
weekdays.  A provider can only see and change their own slots.
"""

import json
import logging
import sqlite3
from collections import OrderedDict
from datetime import date, timedelta
from typing import List

from dial_a_service.app.core.db import get_connection
from dial_a_service.app.core.realtime import hub
from dial_a_service.app.schemas.slot import (
    RecurringSlotCreate,
    RecurringSlotRead,
    RecurringSlotUpdate,
    TimeSlotCreate,
    TimeSlotDay,
    TimeSlotRead,
    TimeSlotUpdate,
)
from dial_a_service.app.services.audit_service import AuditService


logger = logging.getLogger(__name__)


def _slot_from_row(row: sqlite3.Row) -> TimeSlotRead:
    return TimeSlotRead(
        id=row["id"],
        provider_id=row["provider_id"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        status=row["status"],
        notes=row["notes"],
    )


def _recurring_from_row(row: sqlite3.Row) -> RecurringSlotRead:
    return RecurringSlotRead(
        id=row["id"],
        provider_id=row["provider_id"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        days_of_week=json.loads(row["days_of_week"]),
        status=row["status"],
        notes=row["notes"],
    )


def _fetch_owned(cursor: sqlite3.Cursor, table: str, label: str, row_id: int, provider_id: int) -> sqlite3.Row:
    row = cursor.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,)).fetchone()
    if not row:
        raise ValueError(f"{label} {row_id} not found")
    if row["provider_id"] != provider_id:
        raise PermissionError(f"You can only change your own {label.lower()}s")
    return row


def _require_provider(cursor: sqlite3.Cursor, provider_id: int) -> None:
    if not cursor.execute("SELECT id FROM providers WHERE id = ?", (provider_id,)).fetchone():
        raise ValueError("Provider profile not found")


def _apply_update(cursor: sqlite3.Cursor, table: str, row_id: int, fields: dict) -> None:
    if not fields:
        return
    assignments = ", ".join(f"{key} = ?" for key in fields)
    cursor.execute(
        f"UPDATE {table} SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
        (*fields.values(), row_id),
    )


class SlotService:
    """Service for one-off and recurring availability slots."""

    @classmethod
    async def list_slots(cls, provider_id: int, day: date) -> TimeSlotDay:
        """Slots starting on ``day`` ordered by start, plus a by-hour grouping."""
        start = f"{day.isoformat()} 00:00"
        end = f"{(day + timedelta(days=1)).isoformat()} 00:00"
        conn = get_connection()
        try:
            rows = conn.execute(
                """
                SELECT * FROM time_slots
                WHERE provider_id = ? AND start_time >= ? AND start_time < ?
                ORDER BY start_time, id
                """,
                (provider_id, start, end),
            ).fetchall()
        finally:
            conn.close()
        slots = [_slot_from_row(row) for row in rows]
        by_hour: "OrderedDict[str, List[TimeSlotRead]]" = OrderedDict()
        for slot in slots:
            by_hour.setdefault(slot.start_time[11:13], []).append(slot)
        return TimeSlotDay(date=day, slots=slots, by_hour=by_hour)

    @classmethod
    async def create_slot(cls, provider_id: int, data: TimeSlotCreate) -> TimeSlotRead:
        day = data.date.isoformat()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            _require_provider(cursor, provider_id)
            cursor.execute(
                """
                INSERT INTO time_slots (provider_id, start_time, end_time, status, notes)
                VALUES (?, ?, ?, ?, ?)
                """,
                (provider_id, f"{day} {data.start_time}", f"{day} {data.end_time}", data.status, data.notes),
            )
            conn.commit()
            row = cursor.execute("SELECT * FROM time_slots WHERE id = ?", (cursor.lastrowid,)).fetchone()
        finally:
            conn.close()
        slot = _slot_from_row(row)
        hub.publish("time_slots", "INSERT", new=slot.model_dump())
        return slot

    @classmethod
    async def update_slot(cls, slot_id: int, provider_id: int, data: TimeSlotUpdate) -> TimeSlotRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            old = _fetch_owned(cursor, "time_slots", "Time slot", slot_id, provider_id)
            fields = data.model_dump(exclude_unset=True)
            if "status" in fields and fields["status"] is None:
                raise ValueError("status cannot be empty")
            _apply_update(cursor, "time_slots", slot_id, fields)
            conn.commit()
            row = cursor.execute("SELECT * FROM time_slots WHERE id = ?", (slot_id,)).fetchone()
        finally:
            conn.close()
        slot = _slot_from_row(row)
        hub.publish("time_slots", "UPDATE", new=slot.model_dump(), old=_slot_from_row(old).model_dump())
        return slot

    @classmethod
    async def delete_slot(cls, slot_id: int, provider_id: int) -> None:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            old = _fetch_owned(cursor, "time_slots", "Time slot", slot_id, provider_id)
            cursor.execute("DELETE FROM time_slots WHERE id = ?", (slot_id,))
            conn.commit()
        finally:
            conn.close()
        hub.publish("time_slots", "DELETE", old=_slot_from_row(old).model_dump())
        await AuditService.record(
            user_id=provider_id,
            action="delete",
            object_type="time_slot",
            object_id=slot_id,
            details={"start_time": old["start_time"], "end_time": old["end_time"]},
        )

    @classmethod
    async def list_recurring(cls, provider_id: int) -> List[RecurringSlotRead]:
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM recurring_slots WHERE provider_id = ? ORDER BY start_time, id",
                (provider_id,),
            ).fetchall()
        finally:
            conn.close()
        return [_recurring_from_row(row) for row in rows]

    @classmethod
    async def create_recurring(cls, provider_id: int, data: RecurringSlotCreate) -> RecurringSlotRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            _require_provider(cursor, provider_id)
            cursor.execute(
                """
                INSERT INTO recurring_slots (provider_id, start_time, end_time, days_of_week, status, notes)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    provider_id,
                    data.start_time,
                    data.end_time,
                    json.dumps(data.days_of_week),
                    data.status,
                    data.notes,
                ),
            )
            conn.commit()
            row = cursor.execute("SELECT * FROM recurring_slots WHERE id = ?", (cursor.lastrowid,)).fetchone()
        finally:
            conn.close()
        slot = _recurring_from_row(row)
        hub.publish("recurring_slots", "INSERT", new=slot.model_dump())
        return slot

    @classmethod
    async def update_recurring(cls, slot_id: int, provider_id: int, data: RecurringSlotUpdate) -> RecurringSlotRead:
        """Partially update a recurring slot.

        The merged start and end times must still form a valid window.
        """
        fields = data.model_dump(exclude_unset=True)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            old = _fetch_owned(cursor, "recurring_slots", "Recurring slot", slot_id, provider_id)
            for key in ("start_time", "end_time", "days_of_week", "status"):
                if key in fields and fields[key] is None:
                    raise ValueError(f"{key} cannot be empty")
            start = fields.get("start_time", old["start_time"])
            end = fields.get("end_time", old["end_time"])
            if end <= start:
                raise ValueError("End time must be after start time")
            if "days_of_week" in fields:
                fields["days_of_week"] = json.dumps(fields["days_of_week"])
            _apply_update(cursor, "recurring_slots", slot_id, fields)
            conn.commit()
            row = cursor.execute("SELECT * FROM recurring_slots WHERE id = ?", (slot_id,)).fetchone()
        finally:
            conn.close()
        slot = _recurring_from_row(row)
        hub.publish("recurring_slots", "UPDATE", new=slot.model_dump(), old=_recurring_from_row(old).model_dump())
        return slot

    @classmethod
    async def delete_recurring(cls, slot_id: int, provider_id: int) -> None:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            old = _fetch_owned(cursor, "recurring_slots", "Recurring slot", slot_id, provider_id)
            cursor.execute("DELETE FROM recurring_slots WHERE id = ?", (slot_id,))
            conn.commit()
        finally:
            conn.close()
        hub.publish("recurring_slots", "DELETE", old=_recurring_from_row(old).model_dump())
        await AuditService.record(
            user_id=provider_id,
            action="delete",
            object_type="recurring_slot",
            object_id=slot_id,
            details={"days_of_week": json.loads(old["days_of_week"])},
        )
