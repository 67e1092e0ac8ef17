"""Notification senders.

Delivery is best-effort: ``NotificationDispatcher.dispatch`` never raises,
so a failing notifier cannot undo the state change that triggered it.
"""

import dataclasses
import logging
import threading
from collections import deque
from typing import Any, Optional, Protocol

from src.notifications.config import (
    DEFAULT_NOTIFICATION_CONFIG,
    NotificationConfig,
    NotificationKind,
    NotificationStatus,
)
from src.notifications.models import DeliveryStats, Notification

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Delivers a single notification; may raise on failure."""

    def notify(self, user_id: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        ...


class LoggingNotifier:
    """Writes notifications to the application log."""

    def notify(self, user_id: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        notification = Notification(user_id=user_id, kind=kind, payload=dict(payload))
        logger.info(
            "Notification %s to %s: %s",
            kind.value,
            user_id,
            notification.subject,
        )


class InMemoryNotifier:
    """Keeps delivered notifications in a bounded outbox."""

    def __init__(self, config: Optional[NotificationConfig] = None):
        self.config = config or DEFAULT_NOTIFICATION_CONFIG
        self._lock = threading.Lock()
        self._outbox: deque[Notification] = deque(maxlen=self.config.max_outbox)

    def notify(self, user_id: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        with self._lock:
            self._outbox.append(
                Notification(
                    user_id=user_id,
                    kind=kind,
                    payload=dict(payload),
                    status=NotificationStatus.SENT,
                )
            )

    @property
    def outbox(self) -> list[Notification]:
        with self._lock:
            return list(self._outbox)

    def sent_to(self, user_id: str, kind: Optional[NotificationKind] = None) -> list[Notification]:
        return [
            n for n in self.outbox
            if n.user_id == user_id and (kind is None or n.kind == kind)
        ]

    def clear(self) -> None:
        with self._lock:
            self._outbox.clear()


class NotificationDispatcher:
    """Wraps a notifier with failure isolation and delivery stats."""

    def __init__(self, notifier: Optional[Notifier] = None, config: Optional[NotificationConfig] = None):
        self.notifier = notifier or LoggingNotifier()
        self.config = config or DEFAULT_NOTIFICATION_CONFIG
        self._stats = DeliveryStats()
        self._stats_lock = threading.Lock()

    def dispatch(self, user_id: Optional[str], kind: NotificationKind, payload: dict[str, Any]) -> bool:
        """Send a notification; returns False instead of raising on failure."""
        if not self.config.enabled or not user_id:
            return False
        try:
            self.notifier.notify(user_id, kind, payload)
        except Exception:
            with self._stats_lock:
                self._stats.total_failed += 1
            logger.exception("Failed to send %s notification to %s", kind.value, user_id)
            return False
        with self._stats_lock:
            self._stats.total_sent += 1
        return True

    def get_stats(self) -> DeliveryStats:
        """A snapshot of the delivery counters."""
        with self._stats_lock:
            return dataclasses.replace(self._stats)
