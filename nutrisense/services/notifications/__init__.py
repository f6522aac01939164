"""
Notification dispatch for high-severity alerts.
"""

from .interfaces import INotificationDispatcher, Notification
from .dispatchers import LoggingNotificationDispatcher, RecordingNotificationDispatcher

__all__ = [
    "INotificationDispatcher",
    "Notification",
    "LoggingNotificationDispatcher",
    "RecordingNotificationDispatcher",
]
