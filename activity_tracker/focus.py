"""Shared "tracker is frontmost" flag, set by the shell and read by the loop."""

import threading


class ForegroundFlag:
    """Thread-safe boolean that records whether the tracker itself is in front."""

    def __init__(self, initial: bool = False):
        self._event = threading.Event()
        if initial:
            self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def __bool__(self) -> bool:
        return self._event.is_set()

    def set(self, value: bool = True):
        if value:
            self._event.set()
        else:
            self._event.clear()

    def clear(self):
        self._event.clear()
