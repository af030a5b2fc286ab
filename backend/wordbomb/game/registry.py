from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import NotFoundError
from .models import Player, Room
from .turns import TurnSequencer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JoinResult:
    player: Player
    created: bool
    is_reconnect: bool


def join(room: Room, profile: Player, as_host: bool = False) -> JoinResult:
    """Insert a player, refresh their profile, or reconnect them mid-game."""
    existing = room.players.get(profile.id)
    if existing is not None:
        is_reconnect = not existing.connected and room.status == "playing"
        # Profile fields only; score/lives/power-ups survive the rejoin.
        existing.name = profile.name
        existing.color = profile.color
        existing.avatar = profile.avatar
        existing.connection = "connected"
        result = JoinResult(player=existing, created=False, is_reconnect=is_reconnect)
    else:
        room.join_counter += 1
        player = Player(
            id=profile.id,
            name=profile.name,
            color=profile.color,
            avatar=profile.avatar,
            joined_seq=room.join_counter,
        )
        room.players[player.id] = player
        result = JoinResult(player=player, created=True, is_reconnect=False)

    host = room.players.get(room.host_id) if room.host_id else None
    if host is None or (as_host and not host.connected):
        room.host_id = profile.id

    return result


def leave(room: Room, player_id: str) -> Player:
    player = room.players.pop(player_id, None)
    if player is None:
        raise NotFoundError("player_not_found")

    player.removed = True
    if room.turn is not None:
        TurnSequencer(room.turn).remove(player_id)
        room.turn.trapped.discard(player_id)

    if room.host_id == player_id:
        reassign_host(room)

    return player


def mark_disconnected(room: Room, player_id: str) -> Player:
    player = room.players.get(player_id)
    if player is None:
        raise NotFoundError("player_not_found")

    player.connection = "disconnected"
    if room.host_id == player_id:
        reassign_host(room, connected_only=True)
    return player


def all_disconnected(room: Room) -> bool:
    return not any(p.connected for p in room.players.values())


def reassign_host(room: Room, connected_only: bool = False) -> str | None:
    """Pass the host role to the earliest-joined remaining player.

    With `connected_only`, the current host is kept when nobody else is
    connected.
    """
    candidates = sorted(
        (p for p in room.players.values() if p.id != room.host_id),
        key=lambda p: p.joined_seq,
    )
    connected = [p for p in candidates if p.connected]
    if connected:
        room.host_id = connected[0].id
    elif connected_only:
        return room.host_id
    elif candidates:
        room.host_id = candidates[0].id
    else:
        room.host_id = None

    logger.info("[host] room=%s host=%s", room.id, room.host_id)
    return room.host_id
