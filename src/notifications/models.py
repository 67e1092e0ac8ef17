"""Data models for marketplace notifications."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
import uuid

from src.notifications.config import NotificationKind, NotificationStatus, TEMPLATES


def _new_id() -> str:
    return uuid.uuid4().hex[:16]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _Missing(dict):
    def __missing__(self, key):
        return "{" + key + "}"


@dataclass
class Notification:
    """A message addressed to one user."""

    user_id: str
    kind: NotificationKind
    payload: dict[str, Any] = field(default_factory=dict)
    notification_id: str = field(default_factory=_new_id)
    status: Optional[NotificationStatus] = None
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=_now)

    @property
    def subject(self) -> str:
        return TEMPLATES[self.kind]["subject"].format_map(_Missing(self.payload))

    @property
    def body(self) -> str:
        return TEMPLATES[self.kind]["body"].format_map(_Missing(self.payload))

    def to_dict(self) -> dict:
        return {
            "notification_id": self.notification_id,
            "user_id": self.user_id,
            "kind": self.kind.value,
            "subject": self.subject,
            "body": self.body,
            "payload": self.payload,
            "status": self.status.value if self.status else None,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class DeliveryStats:
    """Delivery counters."""

    total_sent: int = 0
    total_failed: int = 0

    @property
    def failure_rate(self) -> float:
        total = self.total_sent + self.total_failed
        if total == 0:
            return 0.0
        return self.total_failed / total * 100

    def to_dict(self) -> dict:
        return {
            "total_sent": self.total_sent,
            "total_failed": self.total_failed,
            "failure_rate": round(self.failure_rate, 2),
        }
