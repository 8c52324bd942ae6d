"""
Service helpers (``jobcost_modules._service_helpers``).

Shared plumbing for module services: routing failures to the injected
notifier before they propagate.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from jobcost_kernel.exceptions import JobCostError
from jobcost_kernel.services.notifier import Notification, NotificationLevel, Notifier


@contextmanager
def report_failures(notifier: Notifier, title: str) -> Iterator[None]:
    """Notify ``title`` with the error details, then re-raise unchanged."""
    try:
        yield
    except JobCostError as exc:
        notifier.notify(Notification(
            title=title,
            description=str(exc),
            level=NotificationLevel.ERROR,
            code=exc.code,
        ))
        raise


def notify_success(notifier: Notifier, title: str, description: str = "") -> None:
    notifier.notify(Notification(title=title, description=description))
