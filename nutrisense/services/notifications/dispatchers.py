"""
Built-in notification dispatchers.
"""

from typing import List

import structlog

from nutrisense.services.notifications.interfaces import INotificationDispatcher, Notification

logger = structlog.get_logger(__name__)


class LoggingNotificationDispatcher(INotificationDispatcher):
    """Default dispatcher: emits the notification as a structured log event."""

    def notify(self, title: str, body: str) -> None:
        logger.info("Notification dispatched", title=title, body=body)


class RecordingNotificationDispatcher(INotificationDispatcher):
    """Keeps notifications in memory; handy for local runs and tests."""

    def __init__(self):
        self.sent: List[Notification] = []

    def notify(self, title: str, body: str) -> None:
        self.sent.append(Notification(title=title, body=body))

    def clear(self) -> None:
        self.sent.clear()
