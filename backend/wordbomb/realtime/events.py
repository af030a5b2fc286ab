from __future__ import annotations

from typing import Any

from flask_socketio import SocketIO


def player_channel(room_id: str, player_id: str) -> str:
    """Socket.IO room that only the given player's sockets join."""
    return f"{room_id}:player:{player_id}"


class SocketIOSink:
    """Delivers engine events over Socket.IO."""

    def __init__(self, socketio: SocketIO):
        self.socketio = socketio

    def to_room(self, room_id: str, event: str, payload: Any) -> None:
        self.socketio.emit(event, payload, to=room_id)

    def to_player(self, room_id: str, player_id: str, event: str, payload: Any) -> None:
        self.socketio.emit(event, payload, to=player_channel(room_id, player_id))
