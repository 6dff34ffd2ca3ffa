"""
Single-thread task queue. Every tracker state change runs here, one task at a
time, so the sampling tick and lifecycle commands never overlap.
"""

import heapq
import itertools
import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

Task = Callable[[], None]


class SerialWorker:
    """
    Runs posted tasks in due-time order on one thread.

    Tasks may be delayed and pending ones removed by identity. run_pending()
    executes every due task on the calling thread, which lets tests drive the
    worker without start().
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, name: str = "tracker-worker"):
        self.name = name
        self._clock = clock
        self._queue: list[tuple[float, int, Task]] = []
        self._seq = itertools.count()
        self._cond = threading.Condition()
        self._thread: Optional[threading.Thread] = None
        self._running = False

    def post(self, task: Task):
        self.post_delayed(task, 0.0)

    def post_delayed(self, task: Task, delay: float):
        with self._cond:
            heapq.heappush(self._queue, (self._clock() + max(delay, 0.0), next(self._seq), task))
            self._cond.notify()

    def remove_callbacks(self, task: Task) -> int:
        """Drop every pending occurrence of task. Returns how many were removed."""
        with self._cond:
            before = len(self._queue)
            # == rather than `is`: bound methods compare equal but are new objects per access
            self._queue = [entry for entry in self._queue if entry[2] != task]
            heapq.heapify(self._queue)
            return before - len(self._queue)

    def pending(self) -> int:
        with self._cond:
            return len(self._queue)

    def next_due(self) -> Optional[float]:
        with self._cond:
            return self._queue[0][0] if self._queue else None

    def run_pending(self) -> int:
        """Run every task that is due now. Returns the number run."""
        ran = 0
        while True:
            with self._cond:
                if not self._queue or self._queue[0][0] > self._clock():
                    return ran
                _, _, task = heapq.heappop(self._queue)
            self._execute(task)
            ran += 1

    def start(self):
        with self._cond:
            if self._running:
                return
            self._running = True
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """Stop the thread. Tasks still queued are not run."""
        with self._cond:
            self._running = False
            self._cond.notify_all()
        if wait and self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None

    def _loop(self):
        while True:
            with self._cond:
                while self._running:
                    if self._queue:
                        wait_for = self._queue[0][0] - self._clock()
                        if wait_for <= 0:
                            break
                        self._cond.wait(wait_for)
                    else:
                        self._cond.wait()
                if not self._running:
                    return
                _, _, task = heapq.heappop(self._queue)
            self._execute(task)

    def _execute(self, task: Task):
        try:
            task()
        except Exception:
            logger.exception("Task %r failed", task)
