"""Open/close bookkeeping for concurrent application sessions."""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

MIN_SESSION_SEC = 1.0


@dataclass(frozen=True)
class Session:
    """One continuous foreground interval for an app."""
    app_id: str
    opened_at: float
    closed_at: Optional[float] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.closed_at is None:
            return None
        return self.closed_at - self.opened_at


@dataclass(frozen=True)
class LogRecord:
    """A closed session or run summary, flattened for the usage log."""
    subject: str
    start_time: float
    end_time: float
    duration_seconds: float

    @classmethod
    def from_session(cls, session: Session) -> "LogRecord":
        return cls(
            subject=session.app_id,
            start_time=session.opened_at,
            end_time=session.closed_at,
            duration_seconds=session.closed_at - session.opened_at,
        )


class SessionLedger:
    """
    Tracks which apps have an open session and when each one opened.

    `opened_at` and the open set are kept separately: an app with a recorded
    open time but no open-set entry is orphaned and can only be closed through
    close_orphan(). Every close that lasted longer than `min_duration` is
    handed to `on_record`.
    """

    def __init__(
        self,
        on_record: Optional[Callable[[LogRecord], None]] = None,
        min_duration: float = MIN_SESSION_SEC,
    ):
        self.min_duration = min_duration
        self._on_record = on_record
        self._opened_at: dict[str, float] = {}
        self._open: set[str] = set()

    def set_record_sink(self, on_record: Optional[Callable[[LogRecord], None]]):
        self._on_record = on_record

    @property
    def open_app_ids(self) -> frozenset:
        return frozenset(self._open)

    def is_open(self, app_id: str) -> bool:
        return app_id in self._open

    def is_orphaned(self, app_id: str) -> bool:
        return app_id in self._opened_at and app_id not in self._open

    def opened_at(self, app_id: str) -> Optional[float]:
        return self._opened_at.get(app_id)

    def __len__(self) -> int:
        return len(self._open)

    def open(self, app_id: str, at: float):
        """Open a session for app_id. A session already open for it is closed first."""
        if app_id in self._open:
            logger.debug("%s opened twice, closing previous session", app_id)
            self.close(app_id, at)
        self._opened_at[app_id] = at
        self._open.add(app_id)
        logger.debug("%s opened at %.3f", app_id, at)

    def close(self, app_id: str, at: float) -> Optional[Session]:
        """Close app_id's session. No-op when it is not open."""
        if app_id not in self._open:
            return None
        self._open.discard(app_id)
        return self._finish(app_id, at)

    def close_orphan(self, app_id: str, at: float) -> Optional[Session]:
        """
        Close a session whose app is no longer in the open set.

        open/close/reconcile keep both structures in step, so within one
        process an orphan only exists after restore() seeded one. Without a
        restored state this is a no-op.
        """
        if not self.is_orphaned(app_id):
            return None
        logger.debug("Closing orphaned session for %s", app_id)
        return self._finish(app_id, at)

    def close_all(self, at: float) -> list[Session]:
        closed = []
        for app_id in list(self._open):
            closed.append(self.close(app_id, at))
        return closed

    def reconcile(self, detected: Iterable[str], at: float) -> list[str]:
        """Close every open app that is not in `detected`. Returns the closed app ids."""
        missing = sorted(self._open.difference(detected))
        for app_id in missing:
            self.close(app_id, at)
        if missing:
            logger.debug("Reconcile closed %s", missing)
        return missing

    def restore(self, opened_at: Mapping[str, float], open_ids: Iterable[str]):
        """
        Seed ledger state, e.g. from a previous process. Entries of opened_at
        not in open_ids become orphans; this is the only way one can arise.
        """
        self._opened_at = dict(opened_at)
        self._open = {a for a in open_ids if a in self._opened_at}

    def _finish(self, app_id: str, at: float) -> Session:
        opened = self._opened_at.pop(app_id)
        session = Session(app_id=app_id, opened_at=opened, closed_at=at)
        duration = at - opened
        if duration > self.min_duration:
            logger.info("%s closed, usage=%ds", app_id, int(duration))
            if self._on_record is not None:
                self._on_record(LogRecord.from_session(session))
        else:
            logger.debug("%s closed after %.3fs, below threshold", app_id, duration)
        return session
