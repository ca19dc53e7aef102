"""
Collecting notifier - records notifications for the host to render.
"""

from dataclasses import dataclass
from typing import Optional

from eventspark.core.logging import get_logger
from eventspark.services.interfaces.notifier import Notifier

logger = get_logger(__name__)


@dataclass(frozen=True)
class Notification:
    level: str  # success, info, error
    message: str


class CollectingNotifier(Notifier):
    """Keeps notifications in arrival order and logs each one."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def _push(self, level: str, message: str) -> None:
        self.notifications.append(Notification(level, message))
        logger.info("user_notified", level=level, message=message)

    def success(self, message: str) -> None:
        self._push("success", message)

    def info(self, message: str) -> None:
        self._push("info", message)

    def error(self, message: str) -> None:
        self._push("error", message)

    @property
    def last(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None

    def drain(self) -> list[Notification]:
        pending, self.notifications = self.notifications, []
        return pending
