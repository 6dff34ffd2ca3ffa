"""Append-only CSV usage log - a header per run, one row per closed session, one summary per run."""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import IO, Optional

from time_tracker.ledger import LogRecord

logger = logging.getLogger(__name__)

HEADER = ("Package", "Start_Time", "End_Time", "Duration")
TIME_FORMAT = "%H:%M:%S"


def _ensure_dir(path: Path):
    path.parent.mkdir(parents=True, exist_ok=True)


def format_time(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime(TIME_FORMAT)


def format_row(record: LogRecord) -> list[str]:
    """Flatten a record to `subject, HH:MM:SS, HH:MM:SS, <whole seconds>s`."""
    return [
        record.subject,
        format_time(record.start_time),
        format_time(record.end_time),
        f"{int(record.duration_seconds)}s",
    ]


class UsageLogWriter:
    """
    Append-only CSV sink. Every row is flushed as soon as it is written.

    Write failures are logged and swallowed: losing a row is preferred over
    interrupting tracking.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._fh: Optional[IO[str]] = None
        self._writer = None

    @property
    def is_open(self) -> bool:
        return self._fh is not None

    def open(self, write_header: bool = False) -> bool:
        """
        Open for appending. The header is written when the file is new or empty,
        or always when write_header is set (it then marks the start of a run).
        Returns success.
        """
        if self._fh is not None:
            return True
        try:
            _ensure_dir(self.path)
            is_new = not self.path.exists() or self.path.stat().st_size == 0
            self._fh = self.path.open("a", encoding="utf-8", newline="")
            self._writer = csv.writer(self._fh, lineterminator="\n")
            if is_new or write_header:
                self._writer.writerow(HEADER)
                self._fh.flush()
        except OSError:
            logger.exception("Could not open usage log %s", self.path)
            self._fh = None
            self._writer = None
            return False
        logger.debug("Usage log opened: %s", self.path.resolve())
        return True

    def append(self, record: LogRecord) -> bool:
        """Write and flush one row. Returns False on a (logged) soft failure."""
        if self._fh is None:
            logger.warning("Usage log %s is not open, dropping %s record", self.path, record.subject)
            return False
        try:
            self._writer.writerow(format_row(record))
            self._fh.flush()
        except OSError as e:
            logger.warning("Failed to write %s record to %s: %s", record.subject, self.path, e)
            return False
        return True

    def close(self):
        if self._fh is None:
            return
        try:
            self._fh.flush()
            self._fh.close()
        except OSError as e:
            logger.warning("Failed to close usage log %s: %s", self.path, e)
        finally:
            self._fh = None
            self._writer = None
        logger.debug("Usage log closed: %s", self.path)

    def __enter__(self) -> "UsageLogWriter":
        self.open()
        return self

    def __exit__(self, *exc):
        self.close()
