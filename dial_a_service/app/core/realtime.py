"""
In-process change notifications.

Services call :meth:`RealtimeHub.publish` after they write a row and
every subscriber whose table and filter match receives the change.
Subscribers are typically WebSocket handlers (see
``api/v1/endpoints/realtime.py``) that forward the events to browser
dashboards, which then reload their data.

Filters use the ``column=eq.value`` syntax, e.g. ``provider_id=eq.7``.
Events are delivered through ``loop.call_soon_threadsafe`` so that a
publisher running in another thread or event loop can never corrupt a
subscriber's queue.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


logger = logging.getLogger(__name__)

EVENT_TYPES = {"INSERT", "UPDATE", "DELETE"}


@dataclass(frozen=True)
class RowFilter:
    column: str
    value: str

    @classmethod
    def parse(cls, expression: Optional[str]) -> Optional["RowFilter"]:
        """Parse ``column=eq.value``; ``None`` or empty means no filter."""
        if not expression:
            return None
        column, sep, rest = expression.partition("=")
        if not sep or not column or not rest.startswith("eq.") or len(rest) == 3:
            raise ValueError(f"Unsupported filter expression: {expression!r}")
        return cls(column=column.strip(), value=rest[3:])

    def matches(self, row: Optional[Dict[str, Any]]) -> bool:
        if not row or self.column not in row or row[self.column] is None:
            return False
        return str(row[self.column]) == self.value


@dataclass(eq=False)
class Subscription:
    table: str
    row_filter: Optional[RowFilter]
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)

    def matches(self, change: Dict[str, Any]) -> bool:
        if change["table"] != self.table:
            return False
        if self.row_filter is None:
            return True
        row = change["old"] if change["event"] == "DELETE" else change["new"]
        return self.row_filter.matches(row)

    async def get(self) -> Dict[str, Any]:
        return await self.queue.get()


class RealtimeHub:
    """Fan-out of table change events to subscribers."""

    def __init__(self) -> None:
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, table: str, filter_expression: Optional[str] = None) -> Subscription:
        """Register interest in changes to ``table``.

        Must be called from within a running event loop; events are
        delivered to that loop.
        """
        subscription = Subscription(
            table=table,
            row_filter=RowFilter.parse(filter_expression),
            loop=asyncio.get_running_loop(),
        )
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug("Subscribed to %s (filter=%s)", table, filter_expression)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(
        self,
        table: str,
        event: str,
        new: Optional[Dict[str, Any]] = None,
        old: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Deliver a change to all matching subscribers.

        Returns the number of subscribers the change was queued for.
        Subscribers whose event loop has been closed are dropped.
        """
        if event not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event}")
        change = {
            "type": "change",
            "table": table,
            "event": event,
            "new": new,
            "old": old,
            "commit_timestamp": datetime.utcnow().isoformat(),
        }
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(change)]
        delivered = 0
        for subscription in targets:
            try:
                subscription.loop.call_soon_threadsafe(subscription.queue.put_nowait, change)
                delivered += 1
            except RuntimeError:
                logger.debug("Dropping subscription on closed loop (%s)", subscription.table)
                self.unsubscribe(subscription)
        return delivered


hub = RealtimeHub()
