"""Kernel services shared by every module."""

from jobcost_kernel.services.notifier import (
    LoggingNotifier,
    Notification,
    NotificationLevel,
    Notifier,
    NullNotifier,
)

__all__ = [
    "LoggingNotifier",
    "Notification",
    "NotificationLevel",
    "Notifier",
    "NullNotifier",
]
