from __future__ import annotations


MESSAGES = {
    "not_your_turn": "Not your turn",
    "missing_fragment": "Word must contain the current wordpiece",
    "already_used": "Word has already been used",
    "not_a_word": "Not a valid English word",
    "missing_power_up": "You do not have this power-up",
    "missing_target": "Target player is required for this power-up",
    "unknown_power_up": "Unknown power-up type",
    "invalid_target": "Invalid target player",
    "invalid_mode": "Unknown game mode",
    "invalid_payload": "Missing required fields",
    "not_enough_players": "Not enough players to start",
    "only_host": "Only the host can do that",
    "game_not_in_progress": "Game is not in progress",
    "game_in_progress": "Game is already in progress",
    "turn_expired": "The turn ended before your word was checked",
    "server_error": "Server error processing your request",
    "room_not_found": "Room does not exist",
    "player_not_found": "Player is not in this room",
}


class GameError(Exception):
    """Base class for errors reported back to the acting player."""

    def __init__(self, code: str, message: str | None = None):
        self.code = code
        self.message = message or MESSAGES.get(code, code)
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {"error": self.code, "message": self.message}


class ValidationError(GameError):
    pass


class NotFoundError(GameError):
    pass


class ExternalLookupFailure(Exception):
    """The remote dictionary service did not answer in time or at all."""
