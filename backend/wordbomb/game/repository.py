from __future__ import annotations

import logging
import time
import uuid
from threading import RLock
from typing import Callable

from .models import Room

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class RoomRepository:
    """Process-owned map of live rooms.

    Only the room map itself is guarded here; a room's contents belong to
    that room's dispatcher lane.
    """

    def __init__(self, clock_ms: Callable[[], int] = now_ms):
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        self._empty_since: dict[str, int] = {}
        self._clock_ms = clock_ms
        self._on_destroy: list[Callable[[str], None]] = []

    def on_destroy(self, callback: Callable[[str], None]) -> None:
        self._on_destroy.append(callback)

    def new_code(self) -> str:
        with self._lock:
            code = uuid.uuid4().hex[:6].upper()
            while code in self._rooms:
                code = uuid.uuid4().hex[:6].upper()
            return code

    def create_or_get(self, room_id: str) -> tuple[Room, bool]:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is not None:
                return room, False
            room = Room(id=room_id, created_at_ms=self._clock_ms())
            self._rooms[room_id] = room

        logger.info("[room-created] room=%s", room_id)
        return room, True

    def get(self, room_id: str) -> Room | None:
        with self._lock:
            return self._rooms.get(room_id)

    def exists(self, room_id: str) -> bool:
        with self._lock:
            return room_id in self._rooms

    def list(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def destroy(self, room_id: str) -> bool:
        with self._lock:
            room = self._rooms.pop(room_id, None)
            self._empty_since.pop(room_id, None)
        if room is None:
            return False

        logger.info("[room-destroyed] room=%s", room_id)
        for callback in self._on_destroy:
            try:
                callback(room_id)
            except Exception:
                logger.exception("[room-destroyed] room=%s cleanup callback failed", room_id)
        return True

    def idle_rooms(self, ttl_sec: int) -> list[str]:
        """Ids of rooms that have had no connected player for at least `ttl_sec`."""
        now = self._clock_ms()
        idle = []
        with self._lock:
            for room in self._rooms.values():
                if any(p.connected for p in list(room.players.values())):
                    self._empty_since.pop(room.id, None)
                    continue
                since = self._empty_since.setdefault(room.id, now)
                if now - since >= ttl_sec * 1000:
                    idle.append(room.id)
        return idle
