"""
Notification sink - collects user-facing success/failure messages.

Fire-and-forget: callers never inspect the result of notify().
"""
import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    level: str  # "success", "info", "warning", "error"
    message: str
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())


class NotificationSink:
    """Keeps the most recent notifications in memory and mirrors them to the log."""

    _LOG_LEVELS = {
        'success': logging.INFO,
        'info': logging.INFO,
        'warning': logging.WARNING,
        'error': logging.ERROR,
    }

    def __init__(self, max_items: int = 200):
        self._items: deque[Notification] = deque(maxlen=max_items)
        self._lock = threading.Lock()

    def notify(self, level: str, message: str):
        with self._lock:
            self._items.append(Notification(level=level, message=message))
        logger.log(self._LOG_LEVELS.get(level, logging.INFO), message)

    def success(self, message: str):
        self.notify('success', message)

    def warning(self, message: str):
        self.notify('warning', message)

    def error(self, message: str):
        self.notify('error', message)

    def recent(self, limit: int = 20) -> list[Notification]:
        with self._lock:
            return list(self._items)[-limit:]

    def clear(self):
        with self._lock:
            self._items.clear()
