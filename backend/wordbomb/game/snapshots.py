from __future__ import annotations

from .models import Room


def _player_state(room: Room, player) -> dict:
    return {
        "id": player.id,
        "name": player.name,
        "color": player.color,
        "avatar": player.avatar,
        "isHost": player.id == room.host_id,
        "connected": player.connected,
        "score": player.score,
        "lives": player.lives,
        "eliminated": player.eliminated and room.status != "waiting",
    }


def scores(room: Room) -> dict[str, int]:
    return {pid: p.score for pid, p in room.players.items()}


def lives(room: Room) -> dict[str, int]:
    return {pid: p.lives for pid, p in room.players.items()}


def power_ups(room: Room) -> dict[str, dict[str, int]]:
    return {pid: dict(p.power_ups) for pid, p in room.players.items()}


def eliminated(room: Room) -> list[str]:
    return [pid for pid, p in room.players.items() if p.eliminated and room.status != "waiting"]


def room_public_state(room: Room) -> dict:
    turn = room.turn
    return {
        "id": room.id,
        "hostId": room.host_id,
        "mode": room.mode,
        "status": room.status,
        "gameInProgress": room.status == "playing",
        "players": [_player_state(room, p) for p in room.players.values()],
        "turnOrder": list(turn.turn_order) if turn else [],
    }


def game_state(room: Room, remaining_sec: float | None = None) -> dict:
    """Full game snapshot, used for game:start, reconnects and state requests."""
    turn = room.turn
    payload = {
        "roomId": room.id,
        "mode": room.mode,
        "status": room.status,
        "scores": scores(room),
        "lives": lives(room),
        "powerUps": power_ups(room),
        "eliminated": eliminated(room),
        "winner": room.winner,
    }
    if turn is not None:
        payload.update(
            {
                "wordpiece": turn.wordpiece,
                "timer": turn.duration_sec if remaining_sec is None else int(round(remaining_sec)),
                "turnOrder": list(turn.turn_order),
                "currentTurn": turn.current_turn,
                "round": turn.round,
                "usedWords": sorted(turn.used_words),
            }
        )
    return payload


def new_wordpiece(room: Room, remaining_sec: float | None = None) -> dict:
    turn = room.turn
    assert turn is not None
    return {
        "wordpiece": turn.wordpiece,
        "timer": turn.duration_sec if remaining_sec is None else int(round(remaining_sec)),
        "currentTurn": turn.current_turn,
        "round": turn.round,
        "lives": lives(room),
        "eliminated": eliminated(room),
        "usedWords": sorted(turn.used_words),
    }


def game_over(room: Room) -> dict:
    return {"finalScores": scores(room), "winner": room.winner}
