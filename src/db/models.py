"""SQLAlchemy ORM models for the FoodConnect platform.

Tables:
- restaurants: Restaurant profiles, one per user
- influencers: Influencer profiles with per-platform follower counts and tier
- campaigns: Restaurant campaigns and their lifecycle status
- applications: Influencer applications, unique per (campaign, influencer)
- commissions: Platform fees, unique per (campaign, influencer)
- follower_update_requests: Follower-count change requests awaiting review
- messages: Direct messages between users, optionally tied to a campaign
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from src.db.base import Base


class RestaurantRecord(Base):
    """Restaurant profile owned by a single user."""

    __tablename__ = "restaurants"

    restaurant_id = Column(String(32), primary_key=True)
    user_id = Column(String(64), nullable=False)
    business_name = Column(String(200), nullable=False)
    location = Column(String(200))
    cuisine_type = Column(String(100))
    phone = Column(String(50))
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_restaurant_user"),
    )


class InfluencerRecord(Base):
    """Influencer profile; tier is derived from the follower counts."""

    __tablename__ = "influencers"

    influencer_id = Column(String(32), primary_key=True)
    user_id = Column(String(64), nullable=False)
    display_name = Column(String(200), nullable=False)
    location = Column(String(200))
    bio = Column(Text)
    instagram_handle = Column(String(100))
    tiktok_handle = Column(String(100))
    xhs_handle = Column(String(100))
    youtube_handle = Column(String(100))
    instagram_followers = Column(Integer, nullable=False, default=0)
    tiktok_followers = Column(Integer, nullable=False, default=0)
    xhs_followers = Column(Integer, nullable=False, default=0)
    youtube_followers = Column(Integer, nullable=False, default=0)
    tier = Column(String(20), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_influencer_user"),
    )


class CampaignRecord(Base):
    """Restaurant campaign."""

    __tablename__ = "campaigns"

    campaign_id = Column(String(32), primary_key=True)
    restaurant_id = Column(
        String(32), ForeignKey("restaurants.restaurant_id"), nullable=False
    )
    title = Column(String(200), nullable=False)
    description = Column(Text)
    budget_per_influencer = Column(Float, nullable=False)
    meal_value = Column(Float)
    max_influencers = Column(Integer, nullable=False, default=1)
    requirements = Column(Text)
    location = Column(String(200))
    deadline = Column(DateTime(timezone=True))
    target_tiers = Column(JSON, nullable=False, default=list)
    status = Column(String(30), nullable=False, default="draft")
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_campaigns_restaurant", "restaurant_id"),
        Index("ix_campaigns_status", "status"),
    )


class ApplicationRecord(Base):
    """Influencer application to a campaign."""

    __tablename__ = "applications"

    application_id = Column(String(32), primary_key=True)
    campaign_id = Column(
        String(32), ForeignKey("campaigns.campaign_id"), nullable=False
    )
    influencer_id = Column(
        String(32), ForeignKey("influencers.influencer_id"), nullable=False
    )
    message = Column(Text)
    status = Column(String(20), nullable=False, default="pending")
    applied_at = Column(DateTime(timezone=True), nullable=False)
    accepted_at = Column(DateTime(timezone=True))
    rejected_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("campaign_id", "influencer_id", name="uq_application_pair"),
        Index("ix_applications_campaign_status", "campaign_id", "status"),
    )


class CommissionRecord(Base):
    """Platform fee for a completed collaboration."""

    __tablename__ = "commissions"

    commission_id = Column(String(32), primary_key=True)
    campaign_id = Column(
        String(32), ForeignKey("campaigns.campaign_id"), nullable=False
    )
    restaurant_id = Column(String(32), nullable=False)
    influencer_id = Column(String(32), nullable=False)
    application_id = Column(String(32))
    campaign_amount = Column(Float, nullable=False)
    commission_rate = Column(Float, nullable=False)
    commission_amount = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    paid_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("campaign_id", "influencer_id", name="uq_commission_pair"),
        Index("ix_commissions_restaurant_status", "restaurant_id", "status"),
    )


class FollowerUpdateRequestRecord(Base):
    """Influencer request to change a platform follower count."""

    __tablename__ = "follower_update_requests"

    request_id = Column(String(32), primary_key=True)
    influencer_id = Column(
        String(32), ForeignKey("influencers.influencer_id"), nullable=False
    )
    platform = Column(String(20), nullable=False)
    current_count = Column(Integer, nullable=False, default=0)
    requested_count = Column(Integer, nullable=False)
    evidence_url = Column(String(500))
    status = Column(String(20), nullable=False, default="pending")
    reviewed_by = Column(String(64))
    review_notes = Column(Text)
    reviewed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_follower_requests_status", "status"),
    )


class MessageRecord(Base):
    """Direct message between two users."""

    __tablename__ = "messages"

    message_id = Column(String(32), primary_key=True)
    sender_id = Column(String(64), nullable=False)
    receiver_id = Column(String(64), nullable=False)
    campaign_id = Column(String(32))
    application_id = Column(String(32))
    content = Column(Text, nullable=False)
    is_system = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="sent")
    read_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_messages_receiver_status", "receiver_id", "status"),
        Index("ix_messages_sender", "sender_id"),
        Index("ix_messages_campaign", "campaign_id"),
    )
