"""Data models for the FoodConnect marketplace."""

import dataclasses
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from dacite import Config, from_dict

from src.marketplace.config import (
    ApplicationStatus,
    CampaignStatus,
    CommissionStatus,
    FollowerUpdateStatus,
    InfluencerTier,
    MessageStatus,
    Platform,
    UserRole,
    campaign_status_label,
    tier_label,
)
from src.marketplace.tiers import classify_tier

T = TypeVar("T")

_DACITE_CONFIG = Config(cast=[Enum, float])


def _new_id() -> str:
    return uuid.uuid4().hex[:16]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def to_record(entity: Any) -> dict:
    """Flatten a dataclass entity into a store record (enums as values)."""
    return {
        f.name: _plain(getattr(entity, f.name))
        for f in dataclasses.fields(entity)
    }


def from_record(entity_class: Type[T], record: dict) -> T:
    """Rebuild an entity from a store record."""
    known = {f.name for f in dataclasses.fields(entity_class)}
    return from_dict(
        entity_class,
        {k: v for k, v in record.items() if k in known},
        config=_DACITE_CONFIG,
    )


@dataclass(frozen=True)
class Actor:
    """The caller identity supplied with every operation."""

    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_restaurant(self) -> bool:
        return self.role == UserRole.RESTAURANT

    @property
    def is_influencer(self) -> bool:
        return self.role == UserRole.INFLUENCER


@dataclass
class Restaurant:
    """A restaurant profile, one per user."""

    user_id: str
    business_name: str
    restaurant_id: str = field(default_factory=_new_id)
    location: str = ""
    cuisine_type: str = ""
    phone: str = ""
    description: str = ""
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "restaurant_id": self.restaurant_id,
            "user_id": self.user_id,
            "business_name": self.business_name,
            "location": self.location,
            "cuisine_type": self.cuisine_type,
            "phone": self.phone,
            "description": self.description,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class Influencer:
    """An influencer profile.

    ``tier`` is derived from the follower counts and is refreshed by
    ``refresh_tier()`` whenever a count changes.
    """

    user_id: str
    display_name: str
    influencer_id: str = field(default_factory=_new_id)
    location: str = ""
    bio: str = ""
    instagram_handle: str = ""
    tiktok_handle: str = ""
    xhs_handle: str = ""
    youtube_handle: str = ""
    instagram_followers: int = 0
    tiktok_followers: int = 0
    xhs_followers: int = 0
    youtube_followers: int = 0
    tier: InfluencerTier = InfluencerTier.EMERGING
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def __post_init__(self):
        self.refresh_tier()

    def follower_counts(self) -> dict[Platform, int]:
        return {
            platform: getattr(self, f"{platform.value}_followers") or 0
            for platform in Platform
        }

    def set_followers(self, platform: Platform, count: int) -> None:
        setattr(self, f"{platform.value}_followers", count)
        self.refresh_tier()

    def refresh_tier(self) -> InfluencerTier:
        self.tier = classify_tier(self.follower_counts())
        return self.tier

    @property
    def total_followers(self) -> int:
        return sum(self.follower_counts().values())

    def to_dict(self) -> dict:
        return {
            "influencer_id": self.influencer_id,
            "user_id": self.user_id,
            "display_name": self.display_name,
            "location": self.location,
            "bio": self.bio,
            "instagram_handle": self.instagram_handle,
            "tiktok_handle": self.tiktok_handle,
            "xhs_handle": self.xhs_handle,
            "youtube_handle": self.youtube_handle,
            "instagram_followers": self.instagram_followers,
            "tiktok_followers": self.tiktok_followers,
            "xhs_followers": self.xhs_followers,
            "youtube_followers": self.youtube_followers,
            "tier": self.tier.value,
            "tier_label": tier_label(self.tier),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class Campaign:
    """A restaurant's paid collaboration offer."""

    restaurant_id: str
    title: str
    budget_per_influencer: float
    campaign_id: str = field(default_factory=_new_id)
    description: str = ""
    meal_value: Optional[float] = None
    max_influencers: int = 1
    requirements: str = ""
    location: str = ""
    deadline: Optional[datetime] = None
    target_tiers: list[InfluencerTier] = field(default_factory=list)
    status: CampaignStatus = CampaignStatus.DRAFT
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True once the deadline (if any) is not in the future."""
        if self.deadline is None:
            return False
        return self.deadline <= (now or _now())

    def days_remaining(self, now: Optional[datetime] = None) -> Optional[int]:
        if self.deadline is None:
            return None
        seconds = (self.deadline - (now or _now())).total_seconds()
        return max(0, math.ceil(seconds / 86400))

    def accepts_tier(self, tier: InfluencerTier) -> bool:
        """An empty target set accepts every tier."""
        return not self.target_tiers or tier in self.target_tiers

    def to_dict(self) -> dict:
        return {
            "campaign_id": self.campaign_id,
            "restaurant_id": self.restaurant_id,
            "title": self.title,
            "description": self.description,
            "budget_per_influencer": self.budget_per_influencer,
            "meal_value": self.meal_value,
            "max_influencers": self.max_influencers,
            "requirements": self.requirements,
            "location": self.location,
            "deadline": _iso(self.deadline),
            "target_tiers": [t.value for t in self.target_tiers],
            "status": self.status.value,
            "status_label": campaign_status_label(self.status),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class Application:
    """An influencer's request to join a campaign."""

    campaign_id: str
    influencer_id: str
    application_id: str = field(default_factory=_new_id)
    message: str = ""
    status: ApplicationStatus = ApplicationStatus.PENDING
    applied_at: datetime = field(default_factory=_now)
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "application_id": self.application_id,
            "campaign_id": self.campaign_id,
            "influencer_id": self.influencer_id,
            "message": self.message,
            "status": self.status.value,
            "applied_at": _iso(self.applied_at),
            "accepted_at": _iso(self.accepted_at),
            "rejected_at": _iso(self.rejected_at),
        }


@dataclass
class Commission:
    """The platform fee for one accepted collaboration on a completed campaign.

    The amount is fixed at creation; only ``status`` changes afterwards.
    """

    campaign_id: str
    restaurant_id: str
    influencer_id: str
    campaign_amount: float
    commission_rate: float
    commission_amount: float
    commission_id: str = field(default_factory=_new_id)
    application_id: Optional[str] = None
    status: CommissionStatus = CommissionStatus.PENDING
    paid_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "commission_id": self.commission_id,
            "campaign_id": self.campaign_id,
            "restaurant_id": self.restaurant_id,
            "influencer_id": self.influencer_id,
            "application_id": self.application_id,
            "campaign_amount": self.campaign_amount,
            "commission_rate": self.commission_rate,
            "commission_amount": self.commission_amount,
            "status": self.status.value,
            "paid_at": _iso(self.paid_at),
            "created_at": _iso(self.created_at),
        }


@dataclass
class FollowerUpdateRequest:
    """An influencer's request to change one platform's follower count."""

    influencer_id: str
    platform: Platform
    requested_count: int
    request_id: str = field(default_factory=_new_id)
    current_count: int = 0
    evidence_url: Optional[str] = None
    status: FollowerUpdateStatus = FollowerUpdateStatus.PENDING
    reviewed_by: Optional[str] = None
    review_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "influencer_id": self.influencer_id,
            "platform": self.platform.value,
            "current_count": self.current_count,
            "requested_count": self.requested_count,
            "evidence_url": self.evidence_url,
            "status": self.status.value,
            "reviewed_by": self.reviewed_by,
            "review_notes": self.review_notes,
            "reviewed_at": _iso(self.reviewed_at),
            "created_at": _iso(self.created_at),
        }


@dataclass
class Message:
    """A direct message between two users, optionally about a campaign."""

    sender_id: str
    receiver_id: str
    content: str
    message_id: str = field(default_factory=_new_id)
    campaign_id: Optional[str] = None
    application_id: Optional[str] = None
    is_system: bool = False
    status: MessageStatus = MessageStatus.SENT
    read_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @property
    def is_read(self) -> bool:
        return self.status == MessageStatus.READ

    def other_party(self, user_id: str) -> str:
        return self.receiver_id if self.sender_id == user_id else self.sender_id

    def to_dict(self) -> dict:
        return {
            "message_id": self.message_id,
            "sender_id": self.sender_id,
            "receiver_id": self.receiver_id,
            "campaign_id": self.campaign_id,
            "application_id": self.application_id,
            "content": self.content,
            "is_system": self.is_system,
            "status": self.status.value,
            "read_at": _iso(self.read_at),
            "sent_at": _iso(self.created_at),
        }
