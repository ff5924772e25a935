"""
Game event log shared between the core and whatever displays it.
"""

from collections import deque
from dataclasses import dataclass
from typing import Iterator, List, Tuple

Color = Tuple[int, int, int]


@dataclass(frozen=True, slots=True)
class LogMessage:
    text: str
    color: Color = (255, 255, 255)


class MessageLog:
    """Bounded, append-only sequence of human readable events."""

    def __init__(self, maxlen: int = 30):
        self.messages: deque[LogMessage] = deque(maxlen=maxlen)

    def add(self, text: str, color: Color = (255, 255, 255)):
        """Add a message to the log."""
        self.messages.append(LogMessage(text, color))

    def clear(self):
        self.messages.clear()

    def lines(self) -> List[str]:
        return [message.text for message in self.messages]

    @property
    def last(self) -> str:
        return self.messages[-1].text if self.messages else ""

    def __iter__(self) -> Iterator[LogMessage]:
        return iter(list(self.messages))

    def __len__(self) -> int:
        return len(self.messages)
