"""Periodic sampling cycle that feeds foreground events into the session ledger."""

import logging
import time
from enum import Enum
from typing import Callable, Iterable, Optional

from activity_tracker import UNKNOWN_APP, EventKind, EventSource, ForegroundFlag

from .ledger import SessionLedger
from .worker import SerialWorker

logger = logging.getLogger(__name__)

TRACK_PERIOD_SEC = 5.0


class CycleOutcome(Enum):
    """What a sampling cycle ended up doing."""
    RECONCILED = "reconciled"              # events seen, stale apps closed
    SELF_FOREGROUND = "self_foreground"    # quiet, tracker itself in front
    INCONCLUSIVE = "inconclusive"          # quiet, fallback app plausible
    ORPHAN_CLOSED = "orphan_closed"        # quiet, fallback app's orphan closed
    IDLE_CLOSED = "idle_closed"            # quiet too long, everything closed
    NO_ACTION = "no_action"
    SOURCE_FAILED = "source_failed"


class TrackingLoop:
    """
    Samples the event source every `period` seconds while running.

    Ticks are scheduled at a fixed rate from each cycle's start time, and each
    tick queries from where the previous window ended, so time spent inside a
    cycle (or a late worker) never opens a gap and no event is read twice.
    Ticks run on the shared worker and re-post themselves only while running.
    """

    def __init__(
        self,
        ledger: SessionLedger,
        event_source: EventSource,
        worker: SerialWorker,
        self_foreground: Optional[ForegroundFlag] = None,
        system_packages: Iterable[str] = (),
        period: float = TRACK_PERIOD_SEC,
        idle_close_after: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ledger = ledger
        self.event_source = event_source
        self.worker = worker
        self.self_foreground = self_foreground
        self.system_packages = frozenset(system_packages)
        self.period = period
        self.idle_close_after = idle_close_after
        self._clock = clock
        self._running = False
        self._last_event_at: Optional[float] = None
        self._window_end: Optional[float] = None

    @property
    def window(self) -> float:
        return self.period

    @property
    def running(self) -> bool:
        return self._running

    def is_system(self, app_id: str) -> bool:
        return app_id in self.system_packages

    def start(self):
        if self._running:
            return
        self._running = True
        self._last_event_at = self._clock()
        self._window_end = None
        self.worker.post(self._tick)

    def stop(self):
        self._running = False
        self.worker.remove_callbacks(self._tick)

    def _tick(self):
        if not self._running:
            return
        now = self._clock()
        self.run_cycle(now, since=self._window_end)
        if self._running:
            elapsed = self._clock() - now
            self.worker.post_delayed(self._tick, max(self.period - elapsed, 0.0))

    def run_cycle(self, now: float, since: Optional[float] = None) -> CycleOutcome:
        """Run one sampling cycle over [since, now), by default [now - window, now)."""
        start = now - self.window if since is None else since
        try:
            events = list(self.event_source.query_events(start, now))
        except Exception:
            logger.exception("Event query failed, skipping cycle")
            return CycleOutcome.SOURCE_FAILED
        self._window_end = now

        detected: set[str] = set()
        for event in events:
            if self.is_system(event.app_id):
                continue
            detected.add(event.app_id)
            if event.kind is EventKind.RESUMED:
                self.ledger.open(event.app_id, event.time)
            elif event.kind is EventKind.PAUSED:
                self.ledger.close(event.app_id, event.time)

        if detected:
            self._last_event_at = now
            self.ledger.reconcile(detected, now)
            return CycleOutcome.RECONCILED

        return self._handle_quiet_cycle(now)

    def _handle_quiet_cycle(self, now: float) -> CycleOutcome:
        if self.self_foreground is not None and self.self_foreground.is_set():
            logger.debug("No events, tracker itself is in the foreground")
            return CycleOutcome.SELF_FOREGROUND

        try:
            fallback = self.event_source.most_recent_foreground_app()
        except Exception:
            logger.exception("Fallback foreground query failed")
            fallback = UNKNOWN_APP

        fallback_usable = bool(fallback) and fallback != UNKNOWN_APP and not self.is_system(fallback)
        open_apps = self.ledger.open_app_ids

        if fallback_usable and open_apps:
            logger.debug("No events, fallback app %s is in front, keeping sessions open", fallback)
            return CycleOutcome.INCONCLUSIVE

        if fallback_usable and not open_apps and self.ledger.is_orphaned(fallback):
            logger.debug("Fallback detected orphaned session for %s", fallback)
            self.ledger.close_orphan(fallback, now)
            return CycleOutcome.ORPHAN_CLOSED

        if (
            self.idle_close_after is not None
            and open_apps
            and self._last_event_at is not None
            and now - self._last_event_at >= self.idle_close_after
        ):
            logger.info("No foreground events for %.0fs, closing %d open sessions", now - self._last_event_at, len(open_apps))
            self.ledger.close_all(now)
            return CycleOutcome.IDLE_CLOSED

        return CycleOutcome.NO_ACTION
