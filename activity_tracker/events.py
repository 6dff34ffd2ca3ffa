"""Foreground transition events and the source interface the tracker samples."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Protocol

UNKNOWN_APP = "unknown"


class EventKind(Enum):
    """Foreground transitions reported for an application."""
    RESUMED = "resumed"
    PAUSED = "paused"


@dataclass(frozen=True)
class UsageEvent:
    """One timestamped transition for an app."""
    app_id: str
    time: float
    kind: EventKind


class EventSource(Protocol):
    """Supplies foreground events to the tracking loop."""

    def query_events(self, start: float, end: float) -> Iterable[UsageEvent]:
        """Events with start <= time < end, oldest first."""
        ...

    def most_recent_foreground_app(self) -> str:
        """Best-effort guess at the frontmost app, or UNKNOWN_APP."""
        ...
