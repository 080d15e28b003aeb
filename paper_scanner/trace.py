"""
Per-image decision trace
"""

from typing import Iterator, List


MAX_EVENT_LENGTH = 200
TRUNCATED_MARKER = "... trace truncated"


class TraceLog:
    """
    Append-only, bounded list of human readable pipeline decisions for one image.

    At most `max_events` lines are kept, each cut to MAX_EVENT_LENGTH
    characters. On overflow the last kept line becomes TRUNCATED_MARKER
    and everything after it is dropped.
    When `debug` is on, every accepted line is also printed.
    """

    def __init__(self, max_events: int = 200, debug: bool = False, label: str = ""):
        self.max_events = max_events
        self.debug = debug
        self.label = label
        self._events: List[str] = []
        self._truncated = False

    def add(self, message: str) -> None:
        if self._truncated:
            return

        if len(self._events) >= self.max_events:
            self._events[-1] = TRUNCATED_MARKER
            self._truncated = True
            return

        message = str(message)
        if len(message) > MAX_EVENT_LENGTH:
            message = message[:MAX_EVENT_LENGTH - 3] + "..."

        self._events.append(message)

        if self.debug:
            prefix = f"  [{self.label}] " if self.label else "  "
            print(f"{prefix}{message}")

    @property
    def truncated(self) -> bool:
        return self._truncated

    def events(self) -> List[str]:
        """Copy of the recorded lines."""
        return list(self._events)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)
