"""Room state machine.

Every public method here assumes it runs inside its room's dispatcher lane,
so it sees and mutates room state without further locking. Side effects leave
the engine only as events pushed into the injected sink.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Callable, Protocol

from ..config import Config
from ..errors import NotFoundError, ValidationError
from . import registry, resolver, snapshots
from .models import GAME_MODES, Player, Room, TurnState, WordVerdict, empty_power_ups
from .registry import JoinResult
from .repository import RoomRepository
from .resolver import SubmissionSuccess, SubmissionTicket
from .timers import TurnTimers
from .turns import GameOver, TurnSequencer

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    def to_room(self, room_id: str, event: str, payload: Any) -> None: ...

    def to_player(self, room_id: str, player_id: str, event: str, payload: Any) -> None: ...


class RoomEngine:
    def __init__(
        self,
        repository: RoomRepository,
        sink: EventSink,
        timers: TurnTimers,
        on_timeout: Callable[[str, int], None],
        config: Any = Config,
        rng: random.Random | None = None,
    ):
        self.repository = repository
        self.sink = sink
        self.timers = timers
        self.on_timeout = on_timeout
        self.config = config
        self.rng = rng or random.Random()

    # ---- lookups ----

    def _room(self, room_id: str) -> Room:
        room = self.repository.get(room_id)
        if room is None:
            raise NotFoundError("room_not_found")
        return room

    def _player(self, room: Room, player_id: str) -> Player:
        player = room.players.get(player_id)
        if player is None:
            raise NotFoundError("player_not_found")
        return player

    def _require_host(self, room: Room, player_id: str) -> None:
        self._player(room, player_id)
        if room.host_id != player_id:
            raise ValidationError("only_host")

    def _broadcast_room(self, room: Room) -> None:
        self.sink.to_room(room.id, "room:update", snapshots.room_public_state(room))

    # ---- membership ----

    def join(self, room_id: str, profile: Player, as_host: bool = False) -> JoinResult:
        room = self.repository.get(room_id)
        if room is None:
            if not as_host:
                raise NotFoundError("room_not_found")
            room, _ = self.repository.create_or_get(room_id)

        result = registry.join(room, profile, as_host=as_host)
        logger.info(
            "Player %s (%s) joined room %s reconnect=%s",
            profile.name, profile.id, room.id, result.is_reconnect,
        )
        self._broadcast_room(room)

        if room.status == "playing" and (result.is_reconnect or profile.id in room.turn.turn_order):
            self.sink.to_player(
                room.id, profile.id, "game:reconnect",
                snapshots.game_state(room, self.timers.remaining(room.id)),
            )
        return result

    def leave(self, room_id: str, player_id: str) -> None:
        room = self._room(room_id)
        was_current = room.status == "playing" and room.turn.current_turn == player_id

        registry.leave(room, player_id)
        logger.info("Player %s left room %s", player_id, room.id)

        if not room.players:
            self.repository.destroy(room.id)
            return

        self._broadcast_room(room)
        if room.status == "playing":
            self._after_removal(room, was_current)

    def disconnect(self, room_id: str, player_id: str) -> None:
        room = self._room(room_id)
        self._player(room, player_id)

        if room.status == "waiting":
            # Nothing to preserve before a game starts.
            self.leave(room_id, player_id)
            return

        registry.mark_disconnected(room, player_id)
        logger.info("Player %s disconnected from room %s", player_id, room.id)
        self._broadcast_room(room)

        if room.status != "playing":
            return
        if registry.all_disconnected(room):
            logger.info("All players disconnected from room %s, ending game", room.id)
            self._end_game(room, winner=None)
        elif room.turn.current_turn == player_id and not room.single:
            self._next_turn(room)

    def check_reconnect(self, room_id: str, player_id: str) -> dict:
        room = self._room(room_id)
        player = room.players.get(player_id)
        can = (
            player is not None
            and room.status == "playing"
            and player_id in room.turn.turn_order
        )
        payload: dict = {"canReconnect": can}
        if can:
            payload.update(
                {
                    "score": player.score,
                    "lives": player.lives,
                    "powerUps": dict(player.power_ups),
                }
            )
        return payload

    # ---- game lifecycle ----

    def start_game(self, room_id: str, player_id: str, mode: str) -> None:
        room = self._room(room_id)
        self._require_host(room, player_id)

        if room.status == "playing":
            raise ValidationError("game_in_progress")
        if mode not in GAME_MODES:
            raise ValidationError("invalid_mode")
        if room.status == "over":
            self._reset(room)

        if mode == "single":
            participants = [player_id]
        else:
            participants = [p.id for p in room.players.values() if p.connected]
            if len(participants) < 2:
                raise ValidationError("not_enough_players")

        for p in room.players.values():
            p.score = 0
            p.power_ups = empty_power_ups()
            p.removed = False
            p.lives = self.config.DEFAULT_LIVES if p.id in participants else 0

        room.mode = mode
        room.status = "playing"
        room.winner = None
        room.turn = TurnState(
            turn_order=list(participants),
            current_turn=participants[0],
            wordpiece="",
        )

        self._deal_turn(room, announce=False)
        logger.info("Game started in room %s, mode: %s", room.id, mode)
        self._broadcast_room(room)
        self.sink.to_room(room.id, "game:start", snapshots.game_state(room))

    def rematch(self, room_id: str, player_id: str) -> None:
        room = self._room(room_id)
        self._require_host(room, player_id)
        if room.status != "over":
            raise ValidationError("game_in_progress" if room.status == "playing" else "game_not_in_progress")
        self._reset(room)
        self._broadcast_room(room)

    def countdown(self, room_id: str, player_id: str, seconds: int) -> None:
        room = self._room(room_id)
        self._require_host(room, player_id)
        if room.status == "playing":
            raise ValidationError("game_in_progress")
        self.sink.to_room(room.id, "game:countdown", {"countdown": seconds})

    def request_state(self, room_id: str, player_id: str) -> dict:
        room = self._room(room_id)
        self._player(room, player_id)
        if room.status != "playing":
            raise ValidationError("game_not_in_progress")
        state = snapshots.game_state(room, self.timers.remaining(room.id))
        self.sink.to_player(room.id, player_id, "game:state_update", state)
        return state

    def force_over(self, room_id: str) -> None:
        room = self.repository.get(room_id)
        if room is not None and room.status == "playing":
            logger.warning("Forcing game over in room %s", room_id)
            self._end_game(room, winner=None)

    def reap(self, room_id: str) -> bool:
        room = self.repository.get(room_id)
        if room is None or not registry.all_disconnected(room):
            return False
        if room.status == "playing":
            self._end_game(room, winner=None)
        return self.repository.destroy(room.id)

    # ---- turns ----

    def begin_submission(self, room_id: str, player_id: str, word: str) -> SubmissionTicket:
        room = self._room(room_id)
        self._player(room, player_id)
        if room.status != "playing":
            raise ValidationError("game_not_in_progress")

        turn = room.turn
        if player_id not in turn.turn_order:
            raise ValidationError("not_your_turn")
        resolver.check_turn(room, player_id)

        try:
            resolver.check_word(turn, word)
        except ValidationError:
            self._fail_turn(room, player_id)
            raise

        return SubmissionTicket(
            room_id=room.id,
            player_id=player_id,
            word=resolver.normalize(word),
            turn_seq=turn.turn_seq,
            wordpiece=turn.wordpiece,
        )

    def complete_submission(self, ticket: SubmissionTicket, verdict: WordVerdict) -> SubmissionSuccess:
        room = self._room(ticket.room_id)
        turn = room.turn
        if (
            room.status != "playing"
            or turn.turn_seq != ticket.turn_seq
            or turn.wordpiece != ticket.wordpiece
            or ticket.player_id not in turn.turn_order
        ):
            logger.info("Discarding stale submission %r in room %s", ticket.word, room.id)
            raise ValidationError("turn_expired")

        if not verdict.is_word:
            self._fail_turn(room, ticket.player_id)
            raise ValidationError("not_a_word")

        player = self._player(room, ticket.player_id)
        success = resolver.apply_success(
            turn,
            player,
            ticket.word,
            self.rng,
            power_up_chance=self.config.POWER_UP_CHANCE,
            power_up_min_length=self.config.POWER_UP_MIN_WORD_LENGTH,
        )
        logger.info(
            "Player %s scored %s with %r in room %s", player.id, success.points, ticket.word, room.id
        )

        self.sink.to_room(
            room.id,
            "game:submission_result",
            {
                "playerId": player.id,
                "word": ticket.word,
                "valid": True,
                "points": success.points,
                "scores": snapshots.scores(room),
                "definition": verdict.definition.to_dict() if verdict.definition else None,
            },
        )
        if success.power_up:
            self.sink.to_player(room.id, player.id, "game:power_up_awarded", {"type": success.power_up})

        if room.single:
            turn.round += 1
            self._deal_turn(room)
        else:
            self._next_turn(room)
        return success

    def use_power_up(self, room_id: str, player_id: str, kind: str, target_id: str | None) -> None:
        room = self._room(room_id)
        self._player(room, player_id)
        outcome = resolver.use_power_up(room, player_id, kind, target_id, self.rng)
        logger.info("Player %s used power-up %s in room %s", player_id, kind, room.id)

        if outcome.rotate and not self._next_turn(room):
            return

        payload = {
            "type": outcome.kind,
            "sourcePlayerId": outcome.source,
            "targetPlayerId": outcome.target,
            "powerUps": snapshots.power_ups(room),
        }
        if outcome.kind == "reverse_turn":
            payload["turnOrder"] = list(room.turn.turn_order)
            payload["currentTurn"] = room.turn.current_turn
        self.sink.to_room(room.id, "game:power_up_used", payload)

        if outcome.wordpiece is not None:
            self.sink.to_room(
                room.id, "game:new_wordpiece",
                snapshots.new_wordpiece(room, self.timers.remaining(room.id)),
            )

    def handle_timeout(self, room_id: str, turn_seq: int) -> None:
        room = self.repository.get(room_id)
        if room is None or room.status != "playing" or room.turn.turn_seq != turn_seq:
            logger.info("[timer-abort] room=%s seq=%s stale", room_id, turn_seq)
            return
        logger.info("Turn timed out in room %s for %s", room.id, room.turn.current_turn)
        self._fail_turn(room, room.turn.current_turn)

    # ---- internals ----

    def _fail_turn(self, room: Room, player_id: str) -> None:
        player = self._player(room, player_id)
        left = resolver.apply_penalty(player)
        self.sink.to_room(
            room.id,
            "game:player_update",
            {"lives": snapshots.lives(room), "scores": snapshots.scores(room)},
        )

        turn = room.turn
        if left <= 0:
            logger.info("Player %s eliminated in room %s", player_id, room.id)
            TurnSequencer(turn).remove(player_id)
            turn.trapped.discard(player_id)

        if room.single:
            if not turn.turn_order:
                self._end_game(room, winner=None)
            else:
                turn.round += 1
                self._deal_turn(room)
        else:
            self._next_turn(room)

    def _after_removal(self, room: Room, was_current: bool) -> None:
        order = room.turn.turn_order
        if room.single:
            if not order:
                self._end_game(room, winner=None)
        elif was_current:
            self._next_turn(room)
        elif len(order) <= 1:
            self._end_game(room, winner=order[0] if order else None)

    def _next_turn(self, room: Room) -> bool:
        """Rotate to the next connected player and deal them a wordpiece.

        Returns False when the rotation ended the game.
        """
        seq = TurnSequencer(room.turn)
        for _ in range(len(room.turn.turn_order)):
            result = seq.advance()
            if isinstance(result, GameOver):
                self._end_game(room, winner=result.winner)
                return False
            nxt = room.players.get(result)
            if nxt is not None and nxt.connected:
                break
        else:
            self._end_game(room, winner=None)
            return False

        self._deal_turn(room)
        return True

    def _duration(self, room: Room) -> int:
        base = (
            self.config.WORDMASTER_TURN_DURATION_SEC
            if room.mode == "wordmaster"
            else self.config.TURN_DURATION_SEC
        )
        decayed = base - self.config.ROUND_TIME_DECAY_SEC * (room.turn.round - 1)
        return max(self.config.MIN_TURN_DURATION_SEC, decayed)

    def _deal_turn(self, room: Room, announce: bool = True) -> None:
        turn = room.turn
        turn.turn_seq += 1
        resolver.draw_wordpiece(turn, turn.current_turn, self.rng)
        turn.duration_sec = self._duration(room)
        self._arm_timer(room)

        if announce:
            self.sink.to_room(room.id, "game:new_wordpiece", snapshots.new_wordpiece(room))

    def _arm_timer(self, room: Room) -> None:
        room_id = room.id
        turn_seq = room.turn.turn_seq

        def _expired() -> None:
            self.on_timeout(room_id, turn_seq)

        on_tick = None
        if self.config.TIMER_TICKS:
            def on_tick(remaining: int) -> None:
                self.sink.to_room(room_id, "game:timer", {"timer": remaining})

        room.turn.deadline = self.timers.start(room_id, room.turn.duration_sec, _expired, on_tick=on_tick)

    def _end_game(self, room: Room, winner: str | None) -> None:
        self.timers.cancel(room.id)
        room.status = "over"
        room.winner = winner
        room.turn = None
        logger.info("Game over in room %s, winner: %s", room.id, winner or "none")
        self.sink.to_room(room.id, "game:over", snapshots.game_over(room))
        self._broadcast_room(room)

    def _reset(self, room: Room) -> None:
        self.timers.cancel(room.id)
        room.status = "waiting"
        room.turn = None
        room.winner = None
        for p in room.players.values():
            p.lives = 0
            p.removed = False
            p.power_ups = empty_power_ups()
