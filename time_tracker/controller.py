"""Start / stop / pause lifecycle for a tracking run."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .ledger import LogRecord, SessionLedger
from .loop import TrackingLoop
from .worker import SerialWorker

logger = logging.getLogger(__name__)

RUN_SUMMARY_MARKER = "TrackingSummary"


class TrackerState(Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class TrackingRun:
    """One start -> stop lifecycle."""
    started_at: float
    stopped_at: Optional[float] = None

    @property
    def elapsed_seconds(self) -> Optional[float]:
        if self.stopped_at is None:
            return None
        return self.stopped_at - self.started_at


class TrackingController:
    """
    Owns the run lifecycle and the usage log for the duration of a run.

    start(), stop() and pause() mutate tracker state and must run on the
    worker. The shell uses submit() (or the *_tracking wrappers) to queue
    them there.
    """

    def __init__(
        self,
        ledger: SessionLedger,
        loop: TrackingLoop,
        writer,
        worker: Optional[SerialWorker] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ledger = ledger
        self.loop = loop
        self.writer = writer
        self.worker = worker or loop.worker
        self._clock = clock
        self._state = TrackerState.IDLE
        self._run: Optional[TrackingRun] = None
        self.ledger.set_record_sink(self._write)
        self._actions: dict[str, Callable[..., object]] = {
            "start": self.start,
            "stop": self.stop,
            "pause": self.pause,
        }

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is TrackerState.RUNNING

    @property
    def current_run(self) -> Optional[TrackingRun]:
        return self._run

    def _write(self, record: LogRecord):
        self.writer.append(record)

    def start(self) -> Optional[TrackingRun]:
        if self.running:
            return None
        now = self._clock()
        # a fresh header row marks the start of every run
        self.writer.open(write_header=True)
        self._run = TrackingRun(started_at=now)
        self._state = TrackerState.RUNNING
        self.loop.start()
        logger.info("Start tracking usage, log: %s", getattr(self.writer, "path", "?"))
        return self._run

    def stop(self) -> Optional[TrackingRun]:
        if not self.running:
            return None
        self.loop.stop()
        now = self._clock()
        self.ledger.close_all(now)
        run = self._run
        run.stopped_at = now
        self._write(LogRecord(RUN_SUMMARY_MARKER, run.started_at, now, run.elapsed_seconds))
        self.writer.close()
        self._state = TrackerState.IDLE
        logger.info("Stop tracking usage, total duration: %ds", int(run.elapsed_seconds))
        return run

    def pause(self, self_app_id: str):
        """Close only the tracker's own session, leaving the run and other sessions alone."""
        if self.ledger.is_open(self_app_id):
            self.ledger.close(self_app_id, self._clock())

    def submit(self, action: str, *args) -> bool:
        """Queue a lifecycle action on the worker. Unknown actions are logged and ignored."""
        handler = self._actions.get(action)
        if handler is None:
            logger.warning("Unknown action: %s", action)
            return False
        self.worker.post(lambda: handler(*args))
        return True

    def start_tracking(self) -> bool:
        return self.submit("start")

    def stop_tracking(self) -> bool:
        return self.submit("stop")

    def pause_tracking(self, self_app_id: str) -> bool:
        return self.submit("pause", self_app_id)
