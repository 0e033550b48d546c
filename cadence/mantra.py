"""
Background mantra counter.

While the shell runs, a daemon thread "recites" a mantra at a fixed
interval as a symbolic offering, and counts the recitations. The session
only ever reads the count.
"""

from __future__ import annotations

import threading

from loguru import logger

MANTRA = "Om Tare Tuttare Ture Soha"


class MantraCounter:
    """Counts mantra recitations in a daemon thread."""

    def __init__(self, interval_seconds: float = 1.0):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self._count = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def count(self) -> int:
        return self._count

    def __call__(self) -> int:
        return self._count

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._recite, name="mantra-counter", daemon=True)
        self._thread.start()
        logger.debug("Mantra counter started")

    def stop(self, timeout: float = 1.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.debug(f"Mantra counter stopped after {self._count} recitations")

    def _recite(self) -> None:
        # Single writer: only this thread increments the count.
        while not self._stop.wait(self.interval_seconds):
            self._count += 1
