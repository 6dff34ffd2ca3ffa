"""Activity tracking - foreground events for the usage tracker."""

from .events import UNKNOWN_APP, EventKind, EventSource, UsageEvent
from .focus import ForegroundFlag
from .monitor import ActivityMonitor

__all__ = [
    "ActivityMonitor",
    "EventKind",
    "EventSource",
    "ForegroundFlag",
    "UNKNOWN_APP",
    "UsageEvent",
]
