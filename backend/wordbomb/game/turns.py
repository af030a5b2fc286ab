"""Turn order bookkeeping.

`TurnSequencer` is a thin view over a room's `TurnState`. It only moves the
current-turn pointer around the order; it never touches lives, timers or
wordpieces, which stay the engine's business.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import TurnState


@dataclass(frozen=True)
class GameOver:
    winner: str | None = None


class TurnSequencer:
    def __init__(self, state: TurnState):
        self.state = state

    def advance(self) -> str | GameOver:
        order = self.state.turn_order
        if len(order) <= 1:
            return GameOver(winner=order[0] if order else None)

        nxt = self.state.cursor + 1
        if nxt >= len(order):
            nxt = 0
            self.state.round += 1

        self.state.cursor = nxt
        self.state.current_turn = order[nxt]
        return self.state.current_turn

    def remove(self, player_id: str) -> bool:
        order = self.state.turn_order
        if player_id not in order:
            return False

        idx = order.index(player_id)
        del order[idx]
        # Keep the cursor on the slot before whoever now follows the
        # removed id, so the next advance() does not skip anyone.
        if idx <= self.state.cursor:
            self.state.cursor -= 1
        return True

    def reverse(self) -> None:
        """Flip the order; the next advance() lands on whoever follows the
        current slot in the flipped order, never on the current player."""
        order = self.state.turn_order
        order.reverse()
        if not order:
            return

        following = (self.state.cursor + 1) % len(order)
        if order[following] == self.state.current_turn:
            self.state.cursor = following

    def peek(self) -> str | None:
        order = self.state.turn_order
        if len(order) <= 1:
            return None
        return order[(self.state.cursor + 1) % len(order)]
