"""
Input events for the turn dispatcher.
Supports VI-style movement keys and free-text commands.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

DEFAULT_MOVEMENT = {
    "h": (-1, 0),
    "j": (0, 1),
    "k": (0, -1),
    "l": (1, 0),
    "left": (-1, 0),
    "down": (0, 1),
    "up": (0, -1),
    "right": (1, 0),
}


@dataclass(frozen=True)
class InputEvent:
    """One discrete player action."""

    action_type: str  # "move" or "command"
    dx: int = 0
    dy: int = 0
    text: str = ""

    @classmethod
    def move(cls, dx: int, dy: int) -> "InputEvent":
        return cls("move", dx=dx, dy=dy)

    @classmethod
    def command(cls, text: str) -> "InputEvent":
        return cls("command", text=text)


class InputHandler:
    """Maps raw keys and command lines onto InputEvents."""

    def __init__(self, controls: Optional[Dict[str, Any]] = None):
        controls = controls or {}
        self.movement_map = {
            key: tuple(delta) for key, delta in controls.get("movement", DEFAULT_MOVEMENT).items()
        }
        self.action_map: Dict[str, str] = dict(controls.get("actions", {}))

    def map_key_to_event(self, key: str) -> Optional[InputEvent]:
        """Map a raw key to an InputEvent."""
        if not key:
            return None

        if key in self.movement_map:
            dx, dy = self.movement_map[key]
            return InputEvent.move(dx, dy)

        if key in self.action_map:
            return InputEvent.command(self.action_map[key])

        return None

    def parse_line(self, line: str) -> Optional[InputEvent]:
        """Turn a typed command line into an event; blank lines are ignored."""
        text = line.strip()
        if not text:
            return None
        return InputEvent.command(text)
