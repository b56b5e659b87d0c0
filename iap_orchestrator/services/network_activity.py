"""Network activity signalling.

The orchestrator tells an optional observer when a collaborator call starts
and when it ends, e.g. to drive a busy indicator. Nothing depends on it.
"""

import threading


class NetworkActivityObserver:
    """Receives start/finish notifications. Default implementation does nothing."""

    def operation_started(self, operation: str) -> None:
        pass

    def operation_finished(self, operation: str) -> None:
        pass


class NetworkActivityCounter(NetworkActivityObserver):
    """Counts in-flight operations; active while at least one is running."""

    def __init__(self):
        self._lock = threading.Lock()
        self._in_flight = 0
        self.started = 0
        self.finished = 0

    def operation_started(self, operation: str) -> None:
        with self._lock:
            self._in_flight += 1
            self.started += 1

    def operation_finished(self, operation: str) -> None:
        with self._lock:
            # Never drop below zero on unbalanced notifications
            self._in_flight = max(0, self._in_flight - 1)
            self.finished += 1

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    @property
    def is_active(self) -> bool:
        return self.in_flight > 0
