from __future__ import annotations

import logging
from threading import RLock
from typing import Any

from flask import request
from flask_socketio import SocketIO, emit, join_room, leave_room

from ..errors import GameError, NotFoundError, ValidationError
from ..game.models import Player
from ..game.service import GameService
from .events import player_channel

logger = logging.getLogger(__name__)


def _validate_name(name: str) -> bool:
    n = (name or "").strip()
    if not n:
        return False
    if len(n) > 16:
        return False
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        return False
    # No control characters.
    for ch in n:
        if ord(ch) < 32:
            return False
    return True


def _text(payload: dict, key: str, limit: int = 200) -> str:
    return str(payload.get(key) or "").strip()[:limit]


def _fail(exc: GameError) -> dict:
    # Errors go to the calling socket only.
    emit("error", exc.to_payload())
    return {"ok": False, "error": exc.code}


def register_socketio_handlers(socketio: SocketIO, service: GameService) -> None:
    lock = RLock()
    sid_to_ctx: dict[str, tuple[str, str]] = {}
    player_sids: dict[tuple[str, str], set[str]] = {}

    def _bind(sid: str, room_id: str, player_id: str) -> None:
        with lock:
            sid_to_ctx[sid] = (room_id, player_id)
            player_sids.setdefault((room_id, player_id), set()).add(sid)

    def _unbind(sid: str) -> tuple[str, str, bool] | None:
        """Forget a socket; the flag says whether it was the player's last one."""
        with lock:
            ctx = sid_to_ctx.pop(sid, None)
            if ctx is None:
                return None
            sids = player_sids.get(ctx, set())
            sids.discard(sid)
            last = not sids
            if last:
                player_sids.pop(ctx, None)
            return ctx[0], ctx[1], last

    def _current(payload: dict) -> tuple[str, str]:
        """(room_id, player_id) bound to this socket, checked against the payload."""
        with lock:
            ctx = sid_to_ctx.get(request.sid)
        room_id = _text(payload, "roomId")
        if ctx is None or (room_id and room_id != ctx[0]):
            raise NotFoundError("player_not_found")
        return ctx

    @socketio.on("room:check")
    def room_check(data):
        room_id = _text(data or {}, "roomId")
        if not room_id:
            return {"exists": False, "error": "Room ID is required"}
        return {"exists": service.room_exists(room_id)}

    @socketio.on("room:check_reconnect")
    def room_check_reconnect(data):
        payload = data or {}
        room_id = _text(payload, "roomId")
        player_id = _text(payload, "playerId")
        if not room_id or not player_id:
            return {"canReconnect": False, "error": "invalid_payload"}
        try:
            return service.check_reconnect(room_id, player_id)
        except GameError as exc:
            return {"canReconnect": False, "error": exc.code}

    @socketio.on("room:join")
    def room_join(data):
        payload = data or {}
        room_id = _text(payload, "roomId")
        player_id = _text(payload, "playerId")
        name = _text(payload, "playerName")
        as_host = bool(payload.get("isHost"))

        if not room_id or not player_id or not _validate_name(name):
            return _fail(ValidationError("invalid_payload"))

        profile = Player(
            id=player_id,
            name=name,
            color=_text(payload, "playerColor", 32),
            avatar=_text(payload, "playerAvatar", 512),
        )

        # One room per socket: joining elsewhere leaves the previous room.
        previous = _unbind(request.sid)
        if previous and previous[:2] != (room_id, player_id):
            leave_room(previous[0])
            leave_room(player_channel(previous[0], previous[1]))
            if previous[2]:
                try:
                    service.leave(previous[0], previous[1])
                except GameError:
                    pass

        join_room(room_id)
        join_room(player_channel(room_id, player_id))
        try:
            result = service.join(room_id, profile, as_host=as_host)
        except GameError as exc:
            leave_room(room_id)
            leave_room(player_channel(room_id, player_id))
            return _fail(exc)

        _bind(request.sid, room_id, player_id)
        return {"ok": True, "created": result.created, "isReconnect": result.is_reconnect}

    @socketio.on("room:leave")
    def room_leave(data):
        payload = data or {}
        try:
            room_id, player_id = _current(payload)
        except GameError as exc:
            return _fail(exc)

        _unbind(request.sid)
        leave_room(room_id)
        leave_room(player_channel(room_id, player_id))
        try:
            service.leave(room_id, player_id)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True}

    @socketio.on("room:rematch")
    def room_rematch(data):
        try:
            room_id, player_id = _current(data or {})
            service.rematch(room_id, player_id)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True}

    @socketio.on("game:start_countdown")
    def game_start_countdown(data):
        payload = data or {}
        raw: Any = payload.get("countdown")
        try:
            seconds = int(raw) if raw is not None else None
        except (TypeError, ValueError):
            return _fail(ValidationError("invalid_payload"))
        try:
            room_id, player_id = _current(payload)
            service.start_countdown(room_id, player_id, seconds)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True}

    @socketio.on("game:start")
    def game_start(data):
        payload = data or {}
        mode = _text(payload, "mode")
        if not mode:
            return _fail(ValidationError("invalid_payload"))
        try:
            room_id, player_id = _current(payload)
            service.start_game(room_id, player_id, mode)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True}

    @socketio.on("game:submit")
    def game_submit(data):
        payload = data or {}
        word = _text(payload, "word", 64)
        if not word:
            return _fail(ValidationError("invalid_payload"))
        try:
            room_id, player_id = _current(payload)
            result = service.submit_word(room_id, player_id, word)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True, "points": result.points}

    @socketio.on("game:use_power_up")
    def game_use_power_up(data):
        payload = data or {}
        kind = _text(payload, "powerUpType")
        if not kind:
            return _fail(ValidationError("invalid_payload"))
        target_id = _text(payload, "targetPlayerId") or None
        try:
            room_id, player_id = _current(payload)
            service.use_power_up(room_id, player_id, kind, target_id)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True}

    @socketio.on("game:request_definition")
    def game_request_definition(data):
        payload = data or {}
        room_id = _text(payload, "roomId")
        word = _text(payload, "word", 64)
        if not room_id or not word:
            return _fail(ValidationError("invalid_payload"))
        try:
            service.request_definition(room_id, word)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True}

    @socketio.on("game:request_state")
    def game_request_state(data):
        try:
            room_id, player_id = _current(data or {})
            service.request_state(room_id, player_id)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True}

    @socketio.on("disconnect")
    def on_disconnect(*args):
        ctx = _unbind(request.sid)
        if ctx is None:
            return
        room_id, player_id, last = ctx
        if not last:
            # Another tab of the same player is still connected.
            return
        logger.info("Client %s disconnected (player %s, room %s)", request.sid, player_id, room_id)
        try:
            service.disconnect(room_id, player_id)
        except GameError:
            pass
