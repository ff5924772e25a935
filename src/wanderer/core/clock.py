"""
Turn-based timing for the simulation.

Input arrives asynchronously from the outside but is only acted on when the
engine drains the queue, one command per turn.
"""

from collections import deque
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from wanderer.input.handler import InputEvent


class TurnState(Enum):
    """Possible states of the turn system."""

    PLAYER_TURN = "player_turn"
    ENEMY_TURN = "enemy_turn"
    GAME_OVER = "game_over"


class TurnClock:
    """Queues player commands and counts completed turns."""

    def __init__(self):
        self.state = TurnState.PLAYER_TURN
        self.turn = 0
        self.action_queue: deque["InputEvent"] = deque()

    def schedule_action(self, event: "InputEvent"):
        """Queue a command for a later turn."""
        self.action_queue.append(event)

    def next_action(self) -> Optional["InputEvent"]:
        if not self.action_queue:
            return None
        return self.action_queue.popleft()

    @property
    def pending(self) -> int:
        return len(self.action_queue)

    def start_enemy_turn(self):
        self.state = TurnState.ENEMY_TURN

    def end_turn(self):
        """Close a turn in which the player acted."""
        self.turn += 1
        if self.state != TurnState.GAME_OVER:
            self.state = TurnState.PLAYER_TURN

    def end_game(self):
        self.state = TurnState.GAME_OVER
        self.action_queue.clear()

    def reset(self):
        """Reset the turn clock."""
        self.state = TurnState.PLAYER_TURN
        self.turn = 0
        self.action_queue.clear()
