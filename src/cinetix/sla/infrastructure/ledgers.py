"""
In-Memory Notification Ledger
==============================

Bounded map of ticket id -> last notification time, scoped to the
process lifetime. A restart starts empty, so a still-breached ticket can be
escalated once more after each restart; use SQLAlchemyNotificationLedger
when that matters.
"""

from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Callable, Optional

from cinetix.sla.application import INotificationLedger, utc_now


class InMemoryNotificationLedger(INotificationLedger):
    """
    Insertion-ordered ledger with a size bound and optional TTL.

    When full, the oldest entry is evicted. Entries older than the TTL
    count as not notified.
    """

    def __init__(
        self,
        max_entries: int = 10000,
        ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._ttl = ttl
        self._clock = clock
        self._entries: "OrderedDict[str, datetime]" = OrderedDict()

    def _is_expired(self, notified_at: datetime) -> bool:
        if self._ttl is None:
            return False
        return self._clock() - notified_at >= self._ttl

    async def has_notified(self, ticket_id: str) -> bool:
        notified_at = self._entries.get(ticket_id)
        if notified_at is None:
            return False
        if self._is_expired(notified_at):
            del self._entries[ticket_id]
            return False
        return True

    async def claim(self, ticket_id: str, notified_at: datetime) -> bool:
        if await self.has_notified(ticket_id):
            return False
        await self.record(ticket_id, notified_at)
        return True

    async def release(self, ticket_id: str) -> None:
        self._entries.pop(ticket_id, None)

    async def record(self, ticket_id: str, notified_at: datetime) -> None:
        self._entries.pop(ticket_id, None)
        self._entries[ticket_id] = notified_at
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def last_notified(self, ticket_id: str) -> Optional[datetime]:
        return self._entries.get(ticket_id)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
