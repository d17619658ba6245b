"""Best-effort refresh signals for household members.

Connected clients join the room of their household; after a successful
mutation the handler publishes a topic and every socket in that room is told
to re-fetch. Delivery is at-most-once: a socket that fails to receive is
dropped and will resynchronise on its next page load.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class RefreshTopic(str, Enum):
    CHORES = "update-chores"
    EVENTS = "update-events"
    BILLS = "update-bills"
    SHOPPING = "update-shopping"
    HOUSEHOLD = "update-household"


class JsonSocket(Protocol):
    async def send_json(self, data: Any) -> None: ...


class HouseholdBroadcaster:
    def __init__(self) -> None:
        self._rooms: dict[int, set[JsonSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def join(self, household_id: int, socket: JsonSocket) -> None:
        async with self._lock:
            self._rooms[household_id].add(socket)

    async def leave(self, household_id: int, socket: JsonSocket) -> None:
        async with self._lock:
            room = self._rooms.get(household_id)
            if room is None:
                return
            room.discard(socket)
            if not room:
                del self._rooms[household_id]

    def connection_count(self, household_id: int) -> int:
        return len(self._rooms.get(household_id, ()))

    async def publish(self, household_id: int | None, topic: RefreshTopic) -> int:
        """Send ``topic`` to the room; returns how many sockets received it."""
        if household_id is None:
            return 0
        async with self._lock:
            sockets = list(self._rooms.get(household_id, ()))
        if not sockets:
            return 0

        message = {"type": topic.value, "householdId": household_id}
        delivered = 0
        for socket in sockets:
            try:
                await socket.send_json(message)
                delivered += 1
            except Exception:
                logger.warning(
                    "Dropping realtime socket for household %s after failed send",
                    household_id,
                    exc_info=True,
                )
                await self.leave(household_id, socket)
        return delivered


broadcaster = HouseholdBroadcaster()


def get_broadcaster() -> HouseholdBroadcaster:
    return broadcaster
