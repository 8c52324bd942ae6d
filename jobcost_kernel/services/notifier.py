"""
Notifier -- user-facing outcome reporting.

Responsibility:
    Carries "expense deleted" / "error saving expense" style messages from
    services to whatever surface shows them.  Services receive a notifier
    through their constructor; nothing is imported as a global singleton.

Failure modes:
    - A notifier must not raise.  Services call it just before returning or
      re-raising, so an exception here would mask the real outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from jobcost_kernel.logging_config import get_logger

logger = get_logger("services.notifier")


class NotificationLevel(Enum):
    """Severity of a user notification."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A short message for the user."""
    title: str
    description: str = ""
    level: NotificationLevel = NotificationLevel.INFO
    code: str | None = None


@runtime_checkable
class Notifier(Protocol):
    """Pluggable sink for user notifications."""

    def notify(self, notification: Notification) -> None:
        ...


class NullNotifier:
    """Discards every notification."""

    def notify(self, notification: Notification) -> None:
        return None


class LoggingNotifier:
    """Writes notifications to the structured log."""

    _LEVELS = {
        NotificationLevel.INFO: logging.INFO,
        NotificationLevel.WARNING: logging.WARNING,
        NotificationLevel.ERROR: logging.ERROR,
    }

    def notify(self, notification: Notification) -> None:
        logger.log(
            self._LEVELS[notification.level],
            "user_notification",
            extra={
                "title": notification.title,
                "description": notification.description,
                "notification_level": notification.level.value,
                "code": notification.code,
            },
        )
