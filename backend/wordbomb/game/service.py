"""Public surface of the game core.

`GameService` wires the repository, lanes, timers, engine and word oracle
together. Each call is queued on the target room's lane and waited on, so
callers see results (or `GameError`s) synchronously while the room itself
only ever runs one action at a time.
"""

from __future__ import annotations

import logging
import random
from concurrent.futures import CancelledError
from typing import Any, Callable

from ..config import Config
from ..errors import GameError, NotFoundError
from ..words.oracle import WordOracle
from .dispatcher import RoomDispatcher
from .engine import EventSink, RoomEngine
from .models import Player
from .registry import JoinResult
from .repository import RoomRepository
from .resolver import SubmissionSuccess
from .timers import TurnTimers

logger = logging.getLogger(__name__)


class GameService:
    def __init__(
        self,
        sink: EventSink,
        oracle: WordOracle,
        start_background_task: Callable,
        sleep: Callable[[float], None],
        config: Any = Config,
        inline: bool = False,
        repository: RoomRepository | None = None,
        timers: TurnTimers | None = None,
        rng: random.Random | None = None,
    ):
        self.config = config
        self.oracle = oracle
        self._spawn = start_background_task
        self._sleep = sleep
        self._reaper_running = False

        self.repository = repository or RoomRepository()
        self.dispatcher = RoomDispatcher(start_background_task, inline=inline)
        self.timers = timers or TurnTimers(start_background_task, sleep)
        self.engine = RoomEngine(
            self.repository,
            sink,
            self.timers,
            on_timeout=self._enqueue_timeout,
            config=config,
            rng=rng,
        )

        self.repository.on_destroy(self.timers.cancel)
        self.repository.on_destroy(self.dispatcher.drop)

    # ---- lane plumbing ----

    def _guarded(self, room_id: str, fn: Callable, *args: Any) -> Any:
        try:
            return fn(*args)
        except GameError:
            raise
        except Exception as exc:
            logger.exception("Unexpected error in room %s while running %s", room_id, fn.__name__)
            self.engine.force_over(room_id)
            raise GameError("server_error") from exc

    def _call(self, room_id: str, fn: Callable, *args: Any, creates: bool = False) -> Any:
        # Only a host join may open a lane for a room that does not exist yet.
        if not creates and not self.repository.exists(room_id):
            raise NotFoundError("room_not_found")

        future = self.dispatcher.submit(room_id, self._guarded, room_id, fn, *args)
        try:
            return future.result()
        except CancelledError:
            raise NotFoundError("room_not_found")
        finally:
            if not self.repository.exists(room_id):
                self.dispatcher.drop_if_idle(room_id)

    def _enqueue_timeout(self, room_id: str, turn_seq: int) -> None:
        if not self.repository.exists(room_id):
            return
        self.dispatcher.submit(room_id, self._guarded, room_id, self.engine.handle_timeout, room_id, turn_seq)

    # ---- inbound actions ----

    def room_exists(self, room_id: str) -> bool:
        return self.repository.exists(room_id)

    def create_room_code(self) -> str:
        return self.repository.new_code()

    def join(self, room_id: str, profile: Player, as_host: bool = False) -> JoinResult:
        return self._call(room_id, self.engine.join, room_id, profile, as_host, creates=as_host)

    def leave(self, room_id: str, player_id: str) -> None:
        self._call(room_id, self.engine.leave, room_id, player_id)

    def disconnect(self, room_id: str, player_id: str) -> None:
        self._call(room_id, self.engine.disconnect, room_id, player_id)

    def check_reconnect(self, room_id: str, player_id: str) -> dict:
        return self._call(room_id, self.engine.check_reconnect, room_id, player_id)

    def start_game(self, room_id: str, player_id: str, mode: str) -> None:
        self._call(room_id, self.engine.start_game, room_id, player_id, mode)

    def start_countdown(self, room_id: str, player_id: str, seconds: int | None = None) -> None:
        self._call(room_id, self.engine.countdown, room_id, player_id, seconds or self.config.COUNTDOWN_SEC)

    def rematch(self, room_id: str, player_id: str) -> None:
        self._call(room_id, self.engine.rematch, room_id, player_id)

    def request_state(self, room_id: str, player_id: str) -> dict:
        return self._call(room_id, self.engine.request_state, room_id, player_id)

    def submit_word(self, room_id: str, player_id: str, word: str) -> SubmissionSuccess:
        ticket = self._call(room_id, self.engine.begin_submission, room_id, player_id, word)
        # The dictionary lookup runs outside the lane; the second phase
        # re-checks that the turn it was made for is still current.
        verdict = self.oracle.check(ticket.word)
        return self._call(room_id, self.engine.complete_submission, ticket, verdict)

    def use_power_up(self, room_id: str, player_id: str, kind: str, target_id: str | None = None) -> None:
        self._call(room_id, self.engine.use_power_up, room_id, player_id, kind, target_id)

    def request_definition(self, room_id: str, word: str) -> dict:
        if not self.repository.exists(room_id):
            raise NotFoundError("room_not_found")
        definition = self.oracle.lookup_definition(word)
        payload = {
            "word": word,
            "definitions": definition.meanings if definition else {},
        }
        self.engine.sink.to_room(room_id, "game:definition", payload)
        return payload

    # ---- housekeeping ----

    def reap_idle_rooms(self) -> list[str]:
        reaped = []
        for room_id in self.repository.idle_rooms(self.config.EMPTY_ROOM_TTL_SEC):
            try:
                if self._call(room_id, self.engine.reap, room_id):
                    reaped.append(room_id)
            except GameError:
                continue
        return reaped

    def start_reaper(self) -> None:
        if self._reaper_running:
            return
        self._reaper_running = True

        def _runner() -> None:
            while self._reaper_running:
                self._sleep(self.config.REAPER_INTERVAL_SEC)
                try:
                    reaped = self.reap_idle_rooms()
                except Exception:
                    logger.exception("[reaper] sweep failed")
                    continue
                if reaped:
                    logger.info("[reaper] destroyed idle rooms %s", ", ".join(reaped))

        self._spawn(_runner)

    def stop_reaper(self) -> None:
        self._reaper_running = False
