"""API Request/Response Models.

Pydantic schemas for the marketplace endpoints. Responses are the
entities' ``to_dict()`` payloads; these models describe request bodies.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ─── Common ──────────────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "1.0.0"
    components: dict[str, str] = Field(default_factory=dict)


class MessageResponse(BaseModel):
    message: str


# ─── Profiles ────────────────────────────────────────────────────────────


class RestaurantCreateRequest(_Request):
    business_name: str = Field(..., min_length=1, max_length=200)
    location: str = ""
    cuisine_type: str = ""
    phone: str = ""
    description: str = ""


class RestaurantUpdateRequest(_Request):
    business_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    location: Optional[str] = None
    cuisine_type: Optional[str] = None
    phone: Optional[str] = None
    description: Optional[str] = None


class InfluencerCreateRequest(_Request):
    display_name: str = Field(..., min_length=1, max_length=200)
    location: str = ""
    bio: str = ""
    instagram_handle: str = ""
    tiktok_handle: str = ""
    xhs_handle: str = ""
    youtube_handle: str = ""
    instagram_followers: int = Field(default=0, ge=0)
    tiktok_followers: int = Field(default=0, ge=0)
    xhs_followers: int = Field(default=0, ge=0)
    youtube_followers: int = Field(default=0, ge=0)


class InfluencerUpdateRequest(_Request):
    """Profile changes; ``tier`` is rejected because it is derived."""

    display_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    location: Optional[str] = None
    bio: Optional[str] = None
    instagram_handle: Optional[str] = None
    tiktok_handle: Optional[str] = None
    xhs_handle: Optional[str] = None
    youtube_handle: Optional[str] = None
    instagram_followers: Optional[int] = Field(default=None, ge=0)
    tiktok_followers: Optional[int] = Field(default=None, ge=0)
    xhs_followers: Optional[int] = Field(default=None, ge=0)
    youtube_followers: Optional[int] = Field(default=None, ge=0)


class FollowerUpdateCreateRequest(_Request):
    platform: str = Field(..., description="instagram, tiktok, xhs or youtube")
    requested_count: int = Field(..., ge=0)
    evidence_url: Optional[str] = Field(default=None, max_length=500)


class FollowerUpdateReviewRequest(_Request):
    approve: bool
    notes: Optional[str] = None


# ─── Campaigns ───────────────────────────────────────────────────────────


class CampaignCreateRequest(_Request):
    title: str = Field(..., min_length=1, max_length=200)
    budget_per_influencer: float = Field(..., ge=0)
    description: str = ""
    meal_value: Optional[float] = Field(default=None, ge=0)
    max_influencers: int = Field(default=1, ge=1)
    requirements: str = ""
    location: str = ""
    deadline: Optional[datetime] = None
    target_tiers: list[str] = Field(default_factory=list)


class CampaignUpdateRequest(_Request):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    budget_per_influencer: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    meal_value: Optional[float] = Field(default=None, ge=0)
    max_influencers: Optional[int] = Field(default=None, ge=1)
    requirements: Optional[str] = None
    location: Optional[str] = None
    deadline: Optional[datetime] = None
    target_tiers: Optional[list[str]] = None


class CompleteCampaignRequest(_Request):
    commission_rate: Optional[float] = Field(default=None, ge=0, le=100)


# ─── Applications ────────────────────────────────────────────────────────


class ApplicationCreateRequest(_Request):
    campaign_id: str
    message: str = Field(default="", max_length=2000)


class ApplicationStatusRequest(_Request):
    status: str = Field(..., description="accepted or rejected")


# ─── Commissions ─────────────────────────────────────────────────────────


class CommissionStatusRequest(_Request):
    status: str = Field(..., description="approved or paid")


# ─── Messages ────────────────────────────────────────────────────────────


class MessageCreateRequest(_Request):
    receiver_id: str = Field(..., min_length=1, max_length=64)
    content: str = Field(..., min_length=1)
    campaign_id: Optional[str] = None