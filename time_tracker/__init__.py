"""Usage-session tracking - ledger, sampling loop, worker and run lifecycle."""

from .ledger import LogRecord, Session, SessionLedger
from .worker import SerialWorker
from .loop import CycleOutcome, TrackingLoop
from .controller import (
    RUN_SUMMARY_MARKER,
    TrackerState,
    TrackingController,
    TrackingRun,
)

__all__ = [
    "CycleOutcome",
    "LogRecord",
    "RUN_SUMMARY_MARKER",
    "SerialWorker",
    "Session",
    "SessionLedger",
    "TrackerState",
    "TrackingController",
    "TrackingLoop",
    "TrackingRun",
]
