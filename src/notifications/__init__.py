"""Marketplace notifications.

Best-effort messages to restaurants and influencers:
- Templated notification kinds
- Logging and in-memory notifiers
- Failure-isolating dispatcher
"""

from src.notifications.config import (
    NotificationKind,
    NotificationStatus,
    NotificationConfig,
    DEFAULT_NOTIFICATION_CONFIG,
    TEMPLATES,
)
from src.notifications.models import (
    Notification,
    DeliveryStats,
)
from src.notifications.sender import (
    Notifier,
    LoggingNotifier,
    InMemoryNotifier,
    NotificationDispatcher,
)

__all__ = [
    # Config
    "NotificationKind",
    "NotificationStatus",
    "NotificationConfig",
    "DEFAULT_NOTIFICATION_CONFIG",
    "TEMPLATES",
    # Models
    "Notification",
    "DeliveryStats",
    # Senders
    "Notifier",
    "LoggingNotifier",
    "InMemoryNotifier",
    "NotificationDispatcher",
]
