"""Toast notification queue for the page."""

from __future__ import annotations

import logging
import threading

from core.models import Notification

logger = logging.getLogger(__name__)


class NotificationCenter:
    """FIFO of notifications waiting to be shown."""

    def __init__(self) -> None:
        self._pending: list[Notification] = []
        self._lock = threading.Lock()

    def push(self, title: str, description: str, variant: str = "default") -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        with self._lock:
            self._pending.append(notification)
        logger.debug("Notification queued: %s - %s", title, description)
        return notification

    def success(self, description: str) -> Notification:
        return self.push("Success", description)

    def error(self, description: str) -> Notification:
        return self.push("Error", description, variant="destructive")

    @property
    def pending(self) -> list[Notification]:
        with self._lock:
            return list(self._pending)

    def drain(self) -> list[Notification]:
        """Return and clear every pending notification."""
        with self._lock:
            drained, self._pending = self._pending, []
        return drained
