"""Per-room turn clocks.

Each armed clock runs as a background task (``socketio.start_background_task``
in production) that polls its deadline. A room owns at most one clock; arming
a new one or cancelling replaces the room's handle, and a task whose handle is
no longer current exits without firing.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from itertools import count
from threading import RLock
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class _Handle:
    generation: int
    deadline: float
    on_expire: Callable[[], None]
    on_tick: Callable[[int], None] | None = None


class TurnTimers:
    def __init__(
        self,
        start_background_task: Callable,
        sleep: Callable[[float], None],
        clock: Callable[[], float] = time.monotonic,
        poll_interval: float = 0.25,
    ):
        self._spawn = start_background_task
        self._sleep = sleep
        self._clock = clock
        self._poll_interval = poll_interval
        self._lock = RLock()
        self._handles: dict[str, _Handle] = {}
        self._generations = count(1)

    def start(
        self,
        room_id: str,
        duration_sec: float,
        on_expire: Callable[[], None],
        on_tick: Callable[[int], None] | None = None,
    ) -> float:
        """Arm the room's clock, replacing any running one. Returns the deadline."""
        with self._lock:
            handle = _Handle(
                generation=next(self._generations),
                deadline=self._clock() + duration_sec,
                on_expire=on_expire,
                on_tick=on_tick,
            )
            self._handles[room_id] = handle

        logger.info(
            "[timer-set] room=%s gen=%s duration=%ss", room_id, handle.generation, duration_sec
        )
        self._spawn(self._run, room_id, handle)
        return handle.deadline

    def cancel(self, room_id: str) -> bool:
        with self._lock:
            handle = self._handles.pop(room_id, None)
        if handle is not None:
            logger.debug("[timer-cancel] room=%s gen=%s", room_id, handle.generation)
        return handle is not None

    def cancel_all(self) -> None:
        with self._lock:
            self._handles.clear()

    def active(self, room_id: str) -> bool:
        with self._lock:
            return room_id in self._handles

    def remaining(self, room_id: str) -> float | None:
        with self._lock:
            handle = self._handles.get(room_id)
        if handle is None:
            return None
        return max(0.0, handle.deadline - self._clock())

    def _current(self, room_id: str, handle: _Handle) -> bool:
        with self._lock:
            return self._handles.get(room_id) is handle

    def _run(self, room_id: str, handle: _Handle) -> None:
        last_tick: int | None = None
        while self._current(room_id, handle):
            remaining = handle.deadline - self._clock()
            if remaining <= 0:
                break

            if handle.on_tick is not None:
                sec = math.ceil(remaining)
                if sec != last_tick:
                    last_tick = sec
                    try:
                        handle.on_tick(sec)
                    except Exception:
                        logger.exception("[timer-tick] room=%s tick callback failed", room_id)

            self._sleep(min(self._poll_interval, remaining))
        else:
            return

        with self._lock:
            if self._handles.get(room_id) is not handle:
                return
            del self._handles[room_id]

        logger.info("[timer-fire] room=%s gen=%s", room_id, handle.generation)
        try:
            handle.on_expire()
        except Exception:
            logger.exception("[timer-fire] room=%s expiry callback failed", room_id)
