"""Restaurant and influencer profiles, follower-count change requests."""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from src.api_errors import (
    ErrorCode,
    InvalidStateError,
    NotFoundError,
    ValidationError,
    validate_count,
    validate_required_text,
)
from src.marketplace.access import require_role
from src.marketplace.config import (
    DEFAULT_MARKETPLACE_CONFIG,
    FollowerUpdateStatus,
    InfluencerTier,
    MarketplaceConfig,
    Platform,
    UserRole,
    parse_enum,
)
from src.marketplace.models import Actor, FollowerUpdateRequest, Influencer, Restaurant
from src.marketplace.repositories import (
    FollowerUpdateRepository,
    InfluencerRepository,
    RestaurantRepository,
)
from src.marketplace.tiers import TIER_ORDER, describe_tier
from src.notifications import NotificationDispatcher, NotificationKind
from src.persistence import Store

logger = logging.getLogger(__name__)

RESTAURANT_FIELDS = ("business_name", "location", "cuisine_type", "phone", "description")

INFLUENCER_TEXT_FIELDS = (
    "display_name",
    "location",
    "bio",
    "instagram_handle",
    "tiktok_handle",
    "xhs_handle",
    "youtube_handle",
)

FOLLOWER_FIELDS = tuple(f"{p.value}_followers" for p in Platform)


def parse_platform(value) -> Platform:
    return parse_enum(Platform, value, "platform")


class ProfileManager:
    """Manages restaurant and influencer profiles."""

    def __init__(
        self,
        store: Store,
        dispatcher: Optional[NotificationDispatcher] = None,
        config: Optional[MarketplaceConfig] = None,
    ):
        self.store = store
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.config = config or DEFAULT_MARKETPLACE_CONFIG
        self.restaurants = RestaurantRepository(store)
        self.influencers = InfluencerRepository(store)
        self.follower_requests = FollowerUpdateRepository(store)

    # =========================================================================
    # Restaurants
    # =========================================================================

    def create_restaurant_profile(
        self,
        actor: Actor,
        business_name: str,
        location: str = "",
        cuisine_type: str = "",
        phone: str = "",
        description: str = "",
    ) -> Restaurant:
        """Create the caller's restaurant profile."""
        require_role(actor, UserRole.RESTAURANT)
        restaurant = Restaurant(
            user_id=actor.user_id,
            business_name=validate_required_text(business_name, "business_name", 200),
            location=location or "",
            cuisine_type=cuisine_type or "",
            phone=phone or "",
            description=description or "",
        )
        restaurant = self.restaurants.insert(restaurant)
        logger.info("Restaurant profile %s created", restaurant.restaurant_id)
        return restaurant

    def update_restaurant_profile(self, actor: Actor, **changes) -> Restaurant:
        require_role(actor, UserRole.RESTAURANT)
        restaurant = self.get_restaurant_for_user(actor.user_id)
        unknown = set(changes) - set(RESTAURANT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        if "business_name" in changes:
            changes["business_name"] = validate_required_text(
                changes["business_name"], "business_name", 200
            )
        for key, value in changes.items():
            setattr(restaurant, key, value if value is not None else "")
        return self.restaurants.save(restaurant)

    def get_restaurant(self, restaurant_id: str) -> Restaurant:
        return self.restaurants.require(restaurant_id)

    def get_restaurant_for_user(self, user_id: str) -> Restaurant:
        restaurant = self.restaurants.find_by_user(user_id)
        if restaurant is None:
            raise NotFoundError(
                "Restaurant profile not found",
                error_code=ErrorCode.PROFILE_NOT_FOUND,
                resource_type="restaurants",
                resource_id=user_id,
            )
        return restaurant

    # =========================================================================
    # Influencers
    # =========================================================================

    def create_influencer_profile(self, actor: Actor, display_name: str, **fields) -> Influencer:
        """Create the caller's influencer profile; the tier is derived."""
        require_role(actor, UserRole.INFLUENCER)
        values = self._clean_influencer_fields(fields)
        influencer = Influencer(
            user_id=actor.user_id,
            display_name=validate_required_text(display_name, "display_name", 200),
            **values,
        )
        influencer = self.influencers.insert(influencer)
        logger.info(
            "Influencer profile created with tier %s",
            influencer.tier.value,
            extra={"influencer_id": influencer.influencer_id},
        )
        return influencer

    def update_influencer_profile(self, actor: Actor, **changes) -> Influencer:
        """Update the caller's profile and recompute the tier."""
        require_role(actor, UserRole.INFLUENCER)
        influencer = self.get_influencer_for_user(actor.user_id)
        if "display_name" in changes:
            changes["display_name"] = validate_required_text(
                changes["display_name"], "display_name", 200
            )
        values = self._clean_influencer_fields(changes, allow_display_name=True)
        previous = influencer.tier
        for key, value in values.items():
            setattr(influencer, key, value)
        influencer.refresh_tier()
        influencer = self.influencers.save(influencer)
        if influencer.tier != previous:
            logger.info(
                "Influencer tier changed %s -> %s",
                previous.value,
                influencer.tier.value,
                extra={"influencer_id": influencer.influencer_id},
            )
        return influencer

    def get_influencer(self, influencer_id: str) -> Influencer:
        return self.influencers.require(influencer_id)

    def get_influencer_for_user(self, user_id: str) -> Influencer:
        influencer = self.influencers.find_by_user(user_id)
        if influencer is None:
            raise NotFoundError(
                "Influencer profile not found",
                error_code=ErrorCode.PROFILE_NOT_FOUND,
                resource_type="influencers",
                resource_id=user_id,
            )
        return influencer

    def find_by_tiers(self, tiers: Iterable[InfluencerTier]) -> list[Influencer]:
        """Influencers in any of ``tiers``."""
        tiers = list(tiers)
        if not tiers:
            return []
        return self.influencers.find_by_tiers(tiers)

    def list_influencers(
        self,
        tier: Optional[InfluencerTier] = None,
        location: Optional[str] = None,
    ) -> list[Influencer]:
        filters = {}
        if tier is not None:
            filters["tier"] = parse_enum(InfluencerTier, tier, "tier").value
        rows = self.influencers.find(**filters)
        if location:
            needle = location.lower()
            rows = [i for i in rows if needle in (i.location or "").lower()]
        return rows

    def platform_stats(self) -> dict:
        """Influencer counts by tier and follower totals by platform."""
        influencers = self.influencers.find()
        by_tier = {tier.value: 0 for tier in TIER_ORDER}
        by_platform = {platform.value: 0 for platform in Platform}
        for influencer in influencers:
            by_tier[influencer.tier.value] += 1
            for platform, count in influencer.follower_counts().items():
                by_platform[platform.value] += count
        return {
            "total_influencers": len(influencers),
            "by_tier": by_tier,
            "followers_by_platform": by_platform,
            "tiers": [describe_tier(t) for t in TIER_ORDER],
        }

    # =========================================================================
    # Follower-count change requests
    # =========================================================================

    def request_follower_update(
        self,
        actor: Actor,
        platform,
        requested_count,
        evidence_url: Optional[str] = None,
    ) -> FollowerUpdateRequest:
        """File a pending request to change one platform's follower count."""
        require_role(actor, UserRole.INFLUENCER)
        influencer = self.get_influencer_for_user(actor.user_id)
        platform = parse_platform(platform)
        request = FollowerUpdateRequest(
            influencer_id=influencer.influencer_id,
            platform=platform,
            requested_count=validate_count(requested_count, "requested_count"),
            current_count=influencer.follower_counts()[platform],
            evidence_url=evidence_url or None,
        )
        request = self.follower_requests.insert(request)
        logger.info(
            "Follower update requested for %s: %s -> %s",
            platform.value,
            request.current_count,
            request.requested_count,
            extra={"influencer_id": influencer.influencer_id},
        )
        return request

    def review_follower_update(
        self,
        actor: Actor,
        request_id: str,
        approve: bool,
        notes: Optional[str] = None,
    ) -> FollowerUpdateRequest:
        """Approve or reject a pending request; approval re-derives the tier."""
        require_role(actor, UserRole.ADMIN)
        with self.store.transaction():
            request = self.follower_requests.require(request_id)
            if request.status != FollowerUpdateStatus.PENDING:
                raise InvalidStateError(
                    f"Follower update request is already {request.status.value}",
                    current_state=request.status.value,
                    attempted="review",
                )
            request.status = (
                FollowerUpdateStatus.APPROVED if approve else FollowerUpdateStatus.REJECTED
            )
            request.reviewed_by = actor.user_id
            request.review_notes = notes
            request.reviewed_at = datetime.now(timezone.utc)
            request = self.follower_requests.save(request)

            influencer = self.influencers.require(request.influencer_id)
            if approve:
                influencer.set_followers(request.platform, request.requested_count)
                influencer = self.influencers.save(influencer)

        self.dispatcher.dispatch(
            influencer.user_id,
            NotificationKind.FOLLOWER_UPDATE_REVIEWED,
            {"platform": request.platform.value, "status": request.status.value},
        )
        return request

    def list_follower_updates(
        self,
        actor: Actor,
        status: Optional[FollowerUpdateStatus] = None,
    ) -> list[FollowerUpdateRequest]:
        """Admins see every request, influencers only their own."""
        filters = {}
        if status is not None:
            filters["status"] = parse_enum(FollowerUpdateStatus, status, "status").value
        if not actor.is_admin:
            require_role(actor, UserRole.INFLUENCER)
            influencer = self.get_influencer_for_user(actor.user_id)
            filters["influencer_id"] = influencer.influencer_id
        return self.follower_requests.find(**filters)

    def _clean_influencer_fields(self, fields: dict, allow_display_name: bool = False) -> dict:
        if "tier" in fields:
            raise ValidationError("tier is derived from follower counts", field="tier")
        allowed = set(INFLUENCER_TEXT_FIELDS) | set(FOLLOWER_FIELDS)
        if not allow_display_name:
            allowed.discard("display_name")
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        values = {}
        for key, value in fields.items():
            if key in FOLLOWER_FIELDS:
                values[key] = validate_count(value if value is not None else 0, key)
            else:
                values[key] = value if value is not None else ""
        return values
