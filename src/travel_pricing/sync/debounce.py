"""
Debouncer - runs a callback once after a quiet period.

Every trigger() restarts the timer; only the last trigger in a burst fires.
"""
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def trigger(self):
        """(Re)start the quiet period."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def flush(self):
        """Run the pending callback now, if any."""
        with self._lock:
            if self._timer is None:
                return
            self._timer.cancel()
            self._timer = None
            self._generation += 1
        self._run()

    def cancel(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1

    def _fire(self, generation: int):
        with self._lock:
            # Superseded by a later trigger/flush/cancel
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
        self._run()

    def _run(self):
        try:
            self.callback()
        except Exception:
            logger.exception("Debounced callback failed")
