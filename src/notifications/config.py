"""Configuration for marketplace notifications."""

from dataclasses import dataclass
from enum import Enum


class NotificationKind(Enum):
    """Template kinds sent to restaurants and influencers."""
    APPLICATION_RECEIVED = "application_received"
    APPLICATION_ACCEPTED = "application_accepted"
    APPLICATION_REJECTED = "application_rejected"
    APPLICATION_WITHDRAWN = "application_withdrawn"
    CAMPAIGN_COMPLETED = "campaign_completed"
    COMMISSION_STATUS_CHANGED = "commission_status_changed"
    FOLLOWER_UPDATE_REVIEWED = "follower_update_reviewed"
    MESSAGE_RECEIVED = "message_received"


class NotificationStatus(Enum):
    """Delivery outcome."""
    SENT = "sent"
    FAILED = "failed"


@dataclass
class NotificationConfig:
    """Notification system configuration."""

    enabled: bool = True
    # Outbox size kept by InMemoryNotifier
    max_outbox: int = 1000
    sender_name: str = "FoodConnect Malaysia"


DEFAULT_NOTIFICATION_CONFIG = NotificationConfig()


# Subject / body templates, formatted with the notification payload
TEMPLATES: dict[NotificationKind, dict[str, str]] = {
    NotificationKind.APPLICATION_RECEIVED: {
        "subject": "New application for {campaign_title}",
        "body": "{influencer_name} applied to your campaign {campaign_title}.",
    },
    NotificationKind.APPLICATION_ACCEPTED: {
        "subject": "Application accepted: {campaign_title}",
        "body": "Congratulations! Your application to {campaign_title} was accepted.",
    },
    NotificationKind.APPLICATION_REJECTED: {
        "subject": "Application update: {campaign_title}",
        "body": "Your application to {campaign_title} was not selected this time.",
    },
    NotificationKind.APPLICATION_WITHDRAWN: {
        "subject": "Application withdrawn: {campaign_title}",
        "body": "{influencer_name} withdrew their application to {campaign_title}.",
    },
    NotificationKind.CAMPAIGN_COMPLETED: {
        "subject": "Campaign completed: {campaign_title}",
        "body": "{campaign_title} is complete. {commission_count} commission(s) were generated.",
    },
    NotificationKind.COMMISSION_STATUS_CHANGED: {
        "subject": "Commission {status}",
        "body": "The commission for {campaign_title} is now {status}.",
    },
    NotificationKind.FOLLOWER_UPDATE_REVIEWED: {
        "subject": "Follower update {status}",
        "body": "Your {platform} follower update request was {status}.",
    },
    NotificationKind.MESSAGE_RECEIVED: {
        "subject": "New message",
        "body": "You have a new message: {preview}",
    },
}
