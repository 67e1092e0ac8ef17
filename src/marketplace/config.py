"""Configuration for the FoodConnect campaign marketplace."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.api_errors import ValidationError


class UserRole(Enum):
    """Caller roles supplied by the identity context."""
    RESTAURANT = "restaurant"
    INFLUENCER = "influencer"
    ADMIN = "admin"


class Platform(Enum):
    """Social platforms tracked for follower counts."""
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    XHS = "xhs"  # Xiaohongshu
    YOUTUBE = "youtube"


class InfluencerTier(Enum):
    """Influencer segments derived from the highest follower count."""
    EMERGING = "emerging"
    GROWING = "growing"
    ESTABLISHED = "established"
    LARGE = "large"
    MAJOR = "major"
    MEGA = "mega"


class CampaignStatus(Enum):
    """Campaign lifecycle states."""
    DRAFT = "draft"
    PUBLISHED = "published"
    APPLICATIONS_OPEN = "applications_open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PAID = "paid"
    CLOSED = "closed"


class ApplicationStatus(Enum):
    """Application statuses."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class CommissionStatus(Enum):
    """Commission statuses."""
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


class FollowerUpdateStatus(Enum):
    """Follower-count change request statuses."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class MessageStatus(Enum):
    """Direct message statuses."""
    SENT = "sent"
    READ = "read"


# Statuses in which influencers may still apply
APPLY_OPEN_STATUSES = frozenset({
    CampaignStatus.PUBLISHED,
    CampaignStatus.APPLICATIONS_OPEN,
    CampaignStatus.IN_PROGRESS,
})

# Statuses in which the restaurant may still accept or reject
REVIEW_OPEN_STATUSES = APPLY_OPEN_STATUSES

# Campaign fields a restaurant may edit
EDITABLE_STATUSES = frozenset({CampaignStatus.DRAFT, CampaignStatus.PUBLISHED})

COMMISSION_TRANSITIONS: dict[CommissionStatus, frozenset] = {
    CommissionStatus.PENDING: frozenset({CommissionStatus.APPROVED, CommissionStatus.PAID}),
    CommissionStatus.APPROVED: frozenset({CommissionStatus.PAID}),
    CommissionStatus.PAID: frozenset(),
}


@dataclass
class MarketplaceConfig:
    """Marketplace configuration."""

    # Platform fee, percent of budget_per_influencer
    default_commission_rate: float = 15.0
    currency: str = "MYR"

    # Campaign limits
    max_title_length: int = 200
    max_description_length: int = 5000
    max_message_length: int = 2000
    max_influencers_limit: int = 500

    # Discovery
    available_page_size: int = 12

    # Lifecycle transitions kept in memory for inspection
    lifecycle_history_limit: int = 500

    # Messaging
    max_chat_message_length: int = 5000
    system_sender_id: str = "system"
    system_message_prefix: str = "[SYSTEM] "

    @classmethod
    def from_settings(cls, settings) -> "MarketplaceConfig":
        """Build a config from the platform Settings object."""
        return cls(
            default_commission_rate=settings.default_commission_rate,
            currency=settings.currency,
            available_page_size=settings.available_page_size,
        )


DEFAULT_MARKETPLACE_CONFIG = MarketplaceConfig()


# Tier metadata
TIER_INFO: dict[InfluencerTier, dict] = {
    InfluencerTier.EMERGING: {
        "label": "Emerging Influencers (1K-5K)",
        "description": "Authentic engagement, long-term customer relationships, cost-effective",
        "min_followers": 0,
    },
    InfluencerTier.GROWING: {
        "label": "Growing Influencers (5K-10K)",
        "description": "Building momentum, great engagement rates, good value for money",
        "min_followers": 5_000,
    },
    InfluencerTier.ESTABLISHED: {
        "label": "Established Influencers (10K-20K)",
        "description": "Proven track record, reliable content creation, solid reach",
        "min_followers": 10_000,
    },
    InfluencerTier.LARGE: {
        "label": "Large Influencers (20K-50K)",
        "description": "Significant influence, professional content, broad audience reach",
        "min_followers": 20_000,
    },
    InfluencerTier.MAJOR: {
        "label": "Major Influencers (50K-100K)",
        "description": "High impact, premium content quality, extensive reach",
        "min_followers": 50_000,
    },
    InfluencerTier.MEGA: {
        "label": "Mega Creators (100K+)",
        "description": "Large reach, immediate visibility boost, premium pricing",
        "min_followers": 100_000,
    },
}

CAMPAIGN_STATUS_LABELS: dict[CampaignStatus, str] = {
    CampaignStatus.DRAFT: "Draft",
    CampaignStatus.PUBLISHED: "Published",
    CampaignStatus.APPLICATIONS_OPEN: "Applications Open",
    CampaignStatus.IN_PROGRESS: "In Progress",
    CampaignStatus.COMPLETED: "Completed",
    CampaignStatus.PAID: "Paid",
    CampaignStatus.CLOSED: "Closed",
}


def tier_label(tier: Optional[InfluencerTier]) -> Optional[str]:
    """Human label for a tier."""
    if tier is None:
        return None
    return TIER_INFO[tier]["label"]


def campaign_status_label(status: CampaignStatus) -> str:
    return CAMPAIGN_STATUS_LABELS[status]


def parse_enum(enum_cls, value, field: str):
    """Coerce a raw value to ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}", field=field)
