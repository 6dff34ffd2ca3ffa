"""Activity monitor - turns frontmost-app polling into RESUMED/PAUSED events. Linux (X11) and macOS supported."""

import logging
import platform
import threading
import time
from collections import deque
from typing import Callable, Optional

from .events import UNKNOWN_APP, EventKind, UsageEvent
from .focus import ForegroundFlag
from .linux import get_frontmost_app_x11

logger = logging.getLogger(__name__)


def default_probe() -> Callable[[], Optional[str]]:
    """Pick the frontmost-app probe for this platform."""
    system = platform.system()
    if system == "Linux":
        return get_frontmost_app_x11
    if system == "Darwin":
        from .macos import get_frontmost_app_macos
        return get_frontmost_app_macos
    return lambda: None


class ActivityMonitor:
    """
    Polls the frontmost app and records focus changes as usage events.

    A focus change from A to B at time t is recorded as PAUSED(A, t) followed
    by RESUMED(B, t). Events live in a bounded buffer that the tracking loop
    queries by time window from another thread.
    """

    def __init__(
        self,
        poll_interval: float = 1.0,
        self_app_id: Optional[str] = None,
        self_foreground: Optional[ForegroundFlag] = None,
        probe: Optional[Callable[[], Optional[str]]] = None,
        clock: Callable[[], float] = time.time,
        max_events: int = 1024,
    ):
        self.poll_interval = poll_interval
        self.self_app_id = self_app_id
        self.self_foreground = self_foreground
        self._probe = probe or default_probe()
        self._clock = clock
        self._events: deque[UsageEvent] = deque(maxlen=max_events)
        self._current: Optional[str] = None
        self._lock = threading.Lock()
        self._on_change_callbacks: list[Callable[[str, Optional[str]], None]] = []
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def on_focus_change(self, callback: Callable[[str, Optional[str]], None]):
        """Register callback(new_app, prev_app) for when the frontmost app changes."""
        self._on_change_callbacks.append(callback)

    def sample(self) -> Optional[str]:
        """Probe once. Returns the frontmost app, or the last known one if the probe fails."""
        app_id = self._probe()
        if not app_id:
            return self._current

        now = self._clock()
        with self._lock:
            prev = self._current
            if prev == app_id:
                return app_id
            if prev is not None:
                self._events.append(UsageEvent(prev, now, EventKind.PAUSED))
            self._events.append(UsageEvent(app_id, now, EventKind.RESUMED))
            self._current = app_id

        logger.debug("Focus %s -> %s", prev, app_id)
        if self.self_foreground is not None and self.self_app_id:
            self.self_foreground.set(app_id == self.self_app_id)
        for cb in self._on_change_callbacks:
            try:
                cb(app_id, prev)
            except Exception:
                logger.exception("Focus-change callback failed")
        return app_id

    def query_events(self, start: float, end: float) -> list[UsageEvent]:
        with self._lock:
            return [e for e in self._events if start <= e.time < end]

    def most_recent_foreground_app(self) -> str:
        with self._lock:
            return self._current or UNKNOWN_APP

    def start(self):
        """Start polling on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="activity-monitor", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self):
        while not self._stop.is_set():
            self.sample()
            self._stop.wait(self.poll_interval)
