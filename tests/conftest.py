"""Shared fixtures and fakes for tracker tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from activity_tracker import UNKNOWN_APP, EventKind, ForegroundFlag, UsageEvent
from time_tracker import LogRecord, SerialWorker, SessionLedger, TrackingLoop

SYSTEM = frozenset({"com.android.systemui", "com.android.launcher"})


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class ScriptedEventSource:
    """In-memory event source. Events are filtered by window like the real one."""

    def __init__(self):
        self.events: list[UsageEvent] = []
        self.fallback = UNKNOWN_APP
        self.queries: list[tuple[float, float]] = []
        self.fail_next = False

    def resumed(self, app_id: str, at: float):
        self.events.append(UsageEvent(app_id, at, EventKind.RESUMED))

    def paused(self, app_id: str, at: float):
        self.events.append(UsageEvent(app_id, at, EventKind.PAUSED))

    def query_events(self, start, end):
        self.queries.append((start, end))
        if self.fail_next:
            self.fail_next = False
            raise RuntimeError("usage stats unavailable")
        return (e for e in self.events if start <= e.time < end)

    def most_recent_foreground_app(self) -> str:
        return self.fallback


class RecordSink:
    """Collects records the way the writer would."""

    def __init__(self):
        self.records: list[LogRecord] = []
        self.path = Path("memory.csv")
        self.opened = 0
        self.headers = 0
        self.closed = 0

    def __call__(self, record: LogRecord):
        self.records.append(record)

    append = __call__

    def open(self, write_header: bool = False):
        self.opened += 1
        if write_header:
            self.headers += 1
        return True

    def close(self):
        self.closed += 1

    @property
    def subjects(self) -> list[str]:
        return [r.subject for r in self.records]


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def sink():
    return RecordSink()


@pytest.fixture
def ledger(sink):
    return SessionLedger(on_record=sink)


@pytest.fixture
def source():
    return ScriptedEventSource()


@pytest.fixture
def flag():
    return ForegroundFlag()


@pytest.fixture
def worker(clock):
    return SerialWorker(clock=clock)


@pytest.fixture
def loop(ledger, source, worker, flag, clock):
    return TrackingLoop(
        ledger,
        source,
        worker,
        self_foreground=flag,
        system_packages=SYSTEM,
        period=5.0,
        clock=clock,
    )
