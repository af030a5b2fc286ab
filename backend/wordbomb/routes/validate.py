from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

bp = Blueprint("validate", __name__)


@bp.post("/validate")
def validate_word():
    data = request.get_json(silent=True) or {}
    word = str(data.get("word") or "").strip()
    wordpiece = str(data.get("wordpiece") or "").strip()

    if not word or not wordpiece:
        return jsonify({"success": False, "message": "Word and wordpiece are required"}), 400

    result = current_app.extensions["wordbomb"].oracle.validate(word, wordpiece)
    return jsonify({"success": True, **result})
