"""Dismissible notifications raised by client-side state (toasts)."""

import itertools
import logging
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT = "default"
DESTRUCTIVE = "destructive"


@dataclass
class Notification:
    id: int
    title: str
    description: Optional[str] = None
    variant: str = DEFAULT


class Notifier:
    def __init__(self):
        self._ids = itertools.count(1)
        self.notifications: List[Notification] = []

    def notify(self, title: str, description: Optional[str] = None, variant: str = DEFAULT) -> Notification:
        notification = Notification(next(self._ids), title, description, variant)
        self.notifications.append(notification)
        logger.debug("Notification %s: %s", notification.id, title)
        return notification

    def error(self, error, title: str = "Something went wrong") -> Notification:
        return self.notify(title, str(error) if error else None, DESTRUCTIVE)

    def dismiss(self, notification_id: int) -> bool:
        for i, notification in enumerate(self.notifications):
            if notification.id == notification_id:
                del self.notifications[i]
                return True
        return False

    def clear(self) -> None:
        self.notifications.clear()
