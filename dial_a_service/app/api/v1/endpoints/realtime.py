"""
Realtime change feed over WebSocket.

Clients connect to ``/api/v1/realtime?token=...&table=...&filter=...``
and receive one JSON message per change to the table.  Administrators
may subscribe to a whole table; everybody else must filter one of the
table's ownership columns (``OWNER_COLUMNS``) on their own user id, e.g.
``provider_id=eq.7`` for jobs or ``id=eq.7`` for providers.  Rejected connections are closed with code 1008.
"""

import asyncio
import contextlib
import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from dial_a_service.app.core.realtime import RowFilter, hub
from dial_a_service.app.core.security import authenticate_token


logger = logging.getLogger(__name__)

router = APIRouter()

OWNER_COLUMNS = {
    "jobs": {"customer_id", "provider_id"},
    "providers": {"id"},
    "time_slots": {"provider_id"},
    "recurring_slots": {"provider_id"},
}


@router.websocket("/realtime")
async def realtime(
    websocket: WebSocket,
    token: str = Query(""),
    table: str = Query(""),
    filter: Optional[str] = Query(None),
) -> None:
    try:
        user = authenticate_token(token)
        row_filter = RowFilter.parse(filter)
    except (PermissionError, ValueError) as e:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(e))
        return
    if table not in OWNER_COLUMNS:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=f"Unknown table: {table}")
        return
    if user.get("role") != "admin" and (
        row_filter is None
        or row_filter.column not in OWNER_COLUMNS[table]
        or row_filter.value != str(user["user_id"])
    ):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Filter must target your own rows")
        return

    await websocket.accept()
    subscription = hub.subscribe(table, filter)

    async def forward() -> None:
        while True:
            await websocket.send_json(await subscription.get())

    sender = None
    try:
        await websocket.send_json({"type": "subscribed", "table": table, "filter": filter})
        sender = asyncio.create_task(forward())
        # Incoming messages are ignored; reading detects the disconnect.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Realtime client for %s disconnected", table)
    finally:
        if sender is not None:
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
                await sender
        hub.unsubscribe(subscription)
