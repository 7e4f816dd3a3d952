from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    event: str
    title: str
    body: str
    employee_id: Optional[int] = None
    data: dict = field(default_factory=dict)


class Notifier(Protocol):
    def send(self, notification: Notification) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Default delivery: writes notifications to the log."""

    def send(self, notification: Notification) -> None:
        logger.info(
            "notify employee=%s event=%s title=%r data=%s",
            notification.employee_id,
            notification.event,
            notification.title,
            notification.data,
        )


def notify_safely(notifier: Optional[Notifier], notification: Notification) -> None:
    """Fire-and-forget: delivery failures are logged, never propagated."""
    if notifier is None:
        return
    try:
        notifier.send(notification)
    except Exception:
        logger.warning("notification %s to employee %s failed", notification.event, notification.employee_id, exc_info=True)
