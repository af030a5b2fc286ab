"""Per-room serialized action lanes.

Every action touching a room (player events and timer expiry alike) is queued
on that room's lane and executed one at a time, in arrival order, by a single
background worker. Lanes of different rooms never share a worker.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from queue import Queue
from threading import RLock
from typing import Any, Callable

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass(eq=False)
class _Lane:
    queue: Queue = field(default_factory=Queue)
    closed: bool = False


def _execute(future: Future, fn: Callable, args: tuple, kwargs: dict) -> None:
    if not future.set_running_or_notify_cancel():
        return
    try:
        future.set_result(fn(*args, **kwargs))
    except BaseException as exc:
        future.set_exception(exc)


class RoomDispatcher:
    def __init__(self, start_background_task: Callable | None = None, inline: bool = False):
        if not inline and start_background_task is None:
            raise ValueError("start_background_task is required unless inline=True")
        self._spawn = start_background_task
        self._inline = inline
        self._lock = RLock()
        self._lanes: dict[str, _Lane] = {}
        self._inline_locks: dict[str, RLock] = {}

    @property
    def inline(self) -> bool:
        return self._inline

    def submit(self, room_id: str, fn: Callable, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()

        if self._inline:
            # Synchronous mode for tests: run now, still one-at-a-time per room.
            with self._lock:
                room_lock = self._inline_locks.setdefault(room_id, RLock())
            with room_lock:
                _execute(future, fn, args, kwargs)
            return future

        with self._lock:
            lane = self._lanes.get(room_id)
            if lane is None:
                lane = _Lane()
                self._lanes[room_id] = lane
                self._spawn(self._drain, room_id, lane)
            lane.queue.put((future, fn, args, kwargs))
        return future

    def drop(self, room_id: str) -> None:
        """Close the room's lane; queued actions that have not started are cancelled."""
        with self._lock:
            self._inline_locks.pop(room_id, None)
            lane = self._lanes.pop(room_id, None)
            if lane is None:
                return
            lane.closed = True
            lane.queue.put(_STOP)
        logger.debug("[lane-drop] room=%s", room_id)

    def drop_if_idle(self, room_id: str) -> bool:
        """Close the room's lane only if nothing is waiting on it."""
        with self._lock:
            lane = self._lanes.get(room_id)
            if lane is not None and not lane.queue.empty():
                return False
            self.drop(room_id)
        return True

    def rooms(self) -> list[str]:
        with self._lock:
            return list(self._lanes)

    def pending(self, room_id: str) -> int:
        with self._lock:
            lane = self._lanes.get(room_id)
            return lane.queue.qsize() if lane is not None else 0

    def _drain(self, room_id: str, lane: _Lane) -> None:
        while True:
            item = lane.queue.get()
            if item is _STOP:
                break

            future, fn, args, kwargs = item
            if lane.closed:
                future.cancel()
                continue
            _execute(future, fn, args, kwargs)

        logger.debug("[lane-exit] room=%s", room_id)
