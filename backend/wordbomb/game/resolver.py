"""Word and power-up rules.

Everything here is a synchronous rule over an already-loaded room; dictionary
lookups happen before these run, and turn rotation, timers and events are
left to the engine.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from ..errors import ValidationError
from .models import POWER_UP_KINDS, Player, Room, TurnState
from .turns import TurnSequencer
from .wordpieces import pick_wordpiece


@dataclass(frozen=True)
class SubmissionTicket:
    room_id: str
    player_id: str
    word: str
    turn_seq: int
    wordpiece: str


@dataclass(frozen=True)
class SubmissionSuccess:
    points: int
    power_up: str | None = None


@dataclass(frozen=True)
class PowerUpOutcome:
    kind: str
    source: str
    target: str | None = None
    rotate: bool = False
    wordpiece: str | None = None


def normalize(word: str) -> str:
    return (word or "").strip().lower()


def score_for(word: str, wordpiece: str) -> int:
    return max(1, len(word) - len(wordpiece) + 1)


def check_turn(room: Room, player_id: str) -> None:
    turn = room.turn
    if room.single:
        return
    if turn is None or turn.current_turn != player_id:
        raise ValidationError("not_your_turn")


def check_word(turn: TurnState, word: str) -> None:
    """Checks that need no dictionary: fragment present, not used this cycle."""
    lowered = normalize(word)
    if turn.wordpiece.lower() not in lowered:
        raise ValidationError(
            "missing_fragment", f'Word must contain "{turn.wordpiece}"'
        )
    if lowered in turn.used_words:
        raise ValidationError("already_used")


def roll_power_up(
    rng: random.Random,
    word: str,
    chance: float = 0.25,
    min_length: int = 8,
) -> str | None:
    if len(word) < min_length:
        return None
    if rng.random() >= chance:
        return None
    return rng.choice(POWER_UP_KINDS)


def apply_success(
    turn: TurnState,
    player: Player,
    word: str,
    rng: random.Random,
    power_up_chance: float = 0.25,
    power_up_min_length: int = 8,
) -> SubmissionSuccess:
    lowered = normalize(word)
    turn.used_words.add(lowered)

    points = score_for(lowered, turn.wordpiece)
    player.score += points

    kind = roll_power_up(rng, lowered, chance=power_up_chance, min_length=power_up_min_length)
    if kind is not None:
        player.power_ups[kind] = player.power_ups.get(kind, 0) + 1

    return SubmissionSuccess(points=points, power_up=kind)


def apply_penalty(player: Player) -> int:
    """Take one life; returns the lives left (never below zero)."""
    player.lives = max(0, player.lives - 1)
    return player.lives


def draw_wordpiece(turn: TurnState, player_id: str | None, rng: random.Random) -> str:
    """Deal a fresh wordpiece for `player_id`, spending their trap marker if any."""
    hard = player_id is not None and player_id in turn.trapped
    if hard:
        turn.trapped.discard(player_id)
    turn.wordpiece = pick_wordpiece(rng, hard=hard)
    turn.used_words.clear()
    return turn.wordpiece


def use_power_up(
    room: Room,
    player_id: str,
    kind: str,
    target_id: str | None,
    rng: random.Random,
) -> PowerUpOutcome:
    turn = room.turn
    if room.status != "playing" or turn is None:
        raise ValidationError("game_not_in_progress")
    if kind not in POWER_UP_KINDS:
        raise ValidationError("unknown_power_up")

    player = room.players.get(player_id)
    if player is None or player.power_ups.get(kind, 0) <= 0:
        raise ValidationError("missing_power_up")

    if kind == "reverse_turn":
        check_turn(room, player_id)
    elif not target_id:
        raise ValidationError("missing_target")
    elif kind == "trap":
        if target_id == player_id or target_id not in turn.turn_order:
            raise ValidationError("invalid_target")
    elif kind == "extra_wordpiece":
        if target_id != turn.current_turn:
            raise ValidationError("invalid_target")

    player.power_ups[kind] -= 1

    if kind == "reverse_turn":
        TurnSequencer(turn).reverse()
        return PowerUpOutcome(kind=kind, source=player_id, rotate=not room.single)

    if kind == "trap":
        turn.trapped.add(target_id)
        return PowerUpOutcome(kind=kind, source=player_id, target=target_id)

    # extra_wordpiece: the current turn gets a fresh fragment from the common pool.
    turn.wordpiece = pick_wordpiece(rng)
    turn.used_words.clear()
    return PowerUpOutcome(kind=kind, source=player_id, target=target_id, wordpiece=turn.wordpiece)
