from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


GameMode = Literal["single", "local", "online", "wordmaster"]
RoomStatus = Literal["waiting", "playing", "over"]
ConnectionState = Literal["connected", "disconnected"]
PowerUpKind = Literal["reverse_turn", "trap", "extra_wordpiece"]

GAME_MODES: tuple[str, ...] = ("single", "local", "online", "wordmaster")
POWER_UP_KINDS: tuple[str, ...] = ("reverse_turn", "trap", "extra_wordpiece")


def empty_power_ups() -> dict[str, int]:
    return {kind: 0 for kind in POWER_UP_KINDS}


@dataclass
class Player:
    id: str
    name: str
    color: str = ""
    avatar: str = ""
    connection: ConnectionState = "connected"
    score: int = 0
    lives: int = 0
    power_ups: dict[str, int] = field(default_factory=empty_power_ups)
    removed: bool = False
    joined_seq: int = 0

    @property
    def connected(self) -> bool:
        return self.connection == "connected"

    @property
    def eliminated(self) -> bool:
        return self.lives <= 0 or self.removed


@dataclass
class TurnState:
    turn_order: list[str]
    current_turn: str
    wordpiece: str
    cursor: int = 0
    used_words: set[str] = field(default_factory=set)
    round: int = 1
    turn_seq: int = 0
    duration_sec: int = 15
    deadline: float | None = None
    trapped: set[str] = field(default_factory=set)


@dataclass
class Room:
    id: str
    host_id: str | None = None
    mode: GameMode | None = None
    status: RoomStatus = "waiting"
    players: dict[str, Player] = field(default_factory=dict)
    turn: TurnState | None = None
    winner: str | None = None
    join_counter: int = 0
    created_at_ms: int = 0

    @property
    def single(self) -> bool:
        return self.mode == "single"


@dataclass
class Definition:
    word: str
    # part of speech -> meanings
    meanings: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"word": self.word, "definitions": self.meanings}


@dataclass(frozen=True)
class WordVerdict:
    is_word: bool
    definition: Definition | None = None
