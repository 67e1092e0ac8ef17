"""FoodConnect campaign marketplace.

Restaurants publish paid campaigns, influencers apply, and the platform
takes a commission on every completed collaboration:
- Tier classification from follower counts
- Campaign lifecycle state machine
- Capacity-bounded application workflow
- Idempotent commission generation
- Campaign-scoped direct messages
"""

from src.marketplace.config import (
    ApplicationStatus,
    CampaignStatus,
    CommissionStatus,
    FollowerUpdateStatus,
    InfluencerTier,
    MessageStatus,
    Platform,
    UserRole,
    MarketplaceConfig,
    DEFAULT_MARKETPLACE_CONFIG,
    TIER_INFO,
)
from src.marketplace.models import (
    Actor,
    Application,
    Campaign,
    Commission,
    FollowerUpdateRequest,
    Influencer,
    Message,
    Restaurant,
)
from src.marketplace.tiers import classify_tier, max_followers, TIER_ORDER
from src.marketplace.lifecycle import CampaignAction, CampaignLifecycle
from src.marketplace.influencers import ProfileManager
from src.marketplace.commissions import CommissionCalculator, compute_commission
from src.marketplace.campaigns import CampaignManager
from src.marketplace.applications import ApplicationWorkflow
from src.marketplace.messages import MessageManager
from src.marketplace.services import MarketplaceServices

__all__ = [
    # Config
    "ApplicationStatus",
    "CampaignStatus",
    "CommissionStatus",
    "FollowerUpdateStatus",
    "InfluencerTier",
    "MessageStatus",
    "Platform",
    "UserRole",
    "MarketplaceConfig",
    "DEFAULT_MARKETPLACE_CONFIG",
    "TIER_INFO",
    # Models
    "Actor",
    "Application",
    "Campaign",
    "Commission",
    "FollowerUpdateRequest",
    "Influencer",
    "Message",
    "Restaurant",
    # Tiers
    "classify_tier",
    "max_followers",
    "TIER_ORDER",
    # Lifecycle
    "CampaignAction",
    "CampaignLifecycle",
    # Managers
    "ProfileManager",
    "CommissionCalculator",
    "compute_commission",
    "CampaignManager",
    "ApplicationWorkflow",
    "MessageManager",
    "MarketplaceServices",
]
