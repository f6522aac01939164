"""
Notification dispatch interface.

Delivery is an external capability: "schedule a local notification with a
title and body". The engine hands messages over and never waits on delivery.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Notification:
    title: str
    body: str
    created_at: datetime = field(default_factory=datetime.utcnow)


class INotificationDispatcher(ABC):
    """Interface for notification delivery backends."""

    @abstractmethod
    def notify(self, title: str, body: str) -> None:
        """Schedule a notification for immediate delivery."""
        pass
