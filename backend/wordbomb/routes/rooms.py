from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game import snapshots

bp = Blueprint("rooms", __name__)


def _service():
    return current_app.extensions["wordbomb"]


@bp.post("/rooms")
def create_room():
    # Only reserves a code; the room itself is created by the host's socket join.
    return jsonify({"success": True, "roomId": _service().create_room_code()}), 201


@bp.get("/rooms/<room_id>")
def get_room(room_id: str):
    room = _service().repository.get(room_id)
    if not room:
        return jsonify({"error": "room_not_found"}), 404
    return jsonify(snapshots.room_public_state(room))
