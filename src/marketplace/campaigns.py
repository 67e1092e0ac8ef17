"""Campaign management for restaurants and campaign discovery for influencers."""

import logging
from datetime import datetime, timezone
from typing import Optional

from src.api_errors import (
    ConflictError,
    InvalidStateError,
    ValidationError,
    validate_amount,
    validate_count,
    validate_pagination,
    validate_required_text,
)
from src.marketplace.access import require_owner, require_role
from src.marketplace.commissions import CommissionCalculator
from src.marketplace.config import (
    APPLY_OPEN_STATUSES,
    DEFAULT_MARKETPLACE_CONFIG,
    EDITABLE_STATUSES,
    ApplicationStatus,
    CampaignStatus,
    InfluencerTier,
    MarketplaceConfig,
    UserRole,
    parse_enum,
)
from src.marketplace.influencers import ProfileManager
from src.marketplace.lifecycle import CampaignAction, CampaignLifecycle
from src.marketplace.models import Actor, Campaign
from src.marketplace.repositories import ApplicationRepository, CampaignRepository
from src.notifications import NotificationDispatcher, NotificationKind
from src.persistence import Store

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "description",
    "budget_per_influencer",
    "meal_value",
    "max_influencers",
    "requirements",
    "location",
    "deadline",
    "target_tiers",
)


def _utc(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            raise ValidationError("deadline must be an ISO 8601 timestamp", field="deadline")
    if not isinstance(value, datetime):
        raise ValidationError("deadline must be a timestamp", field="deadline")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _tiers(values) -> list[InfluencerTier]:
    if not values:
        return []
    tiers = []
    for value in values:
        tier = parse_enum(InfluencerTier, value, "target_tiers")
        if tier not in tiers:
            tiers.append(tier)
    return tiers


class CampaignManager:
    """Creates campaigns and drives them through their lifecycle."""

    def __init__(
        self,
        store: Store,
        profiles: ProfileManager,
        commissions: CommissionCalculator,
        dispatcher: Optional[NotificationDispatcher] = None,
        config: Optional[MarketplaceConfig] = None,
        lifecycle: Optional[CampaignLifecycle] = None,
    ):
        self.store = store
        self.profiles = profiles
        self.commission_calculator = commissions
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.config = config or DEFAULT_MARKETPLACE_CONFIG
        self.lifecycle = lifecycle or CampaignLifecycle()
        self.campaigns = CampaignRepository(store)
        self.applications = ApplicationRepository(store)

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_campaign(
        self,
        actor: Actor,
        title: str,
        budget_per_influencer,
        description: str = "",
        meal_value=None,
        max_influencers=1,
        requirements: str = "",
        location: str = "",
        deadline=None,
        target_tiers=None,
    ) -> Campaign:
        """Create a draft campaign owned by the caller's restaurant."""
        require_role(actor, UserRole.RESTAURANT)
        restaurant = self.profiles.get_restaurant_for_user(actor.user_id)

        campaign = Campaign(
            restaurant_id=restaurant.restaurant_id,
            title=validate_required_text(title, "title", self.config.max_title_length),
            budget_per_influencer=validate_amount(budget_per_influencer, "budget_per_influencer"),
            description=description or "",
            meal_value=validate_amount(meal_value, "meal_value", allow_none=True),
            max_influencers=self._validate_capacity(max_influencers),
            requirements=requirements or "",
            location=location or "",
            deadline=_utc(deadline),
            target_tiers=_tiers(target_tiers),
        )
        if len(campaign.description) > self.config.max_description_length:
            raise ValidationError("description is too long", field="description")

        campaign = self.campaigns.insert(campaign)
        logger.info(
            "Campaign created: %s",
            campaign.title,
            extra={"campaign_id": campaign.campaign_id},
        )
        return campaign

    def update_campaign(self, actor: Actor, campaign_id: str, **changes) -> Campaign:
        """Edit a draft or published campaign."""
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

        with self.store.transaction():
            campaign = self.campaigns.lock(campaign_id)
            self._check_owner(actor, campaign)
            if campaign.status not in EDITABLE_STATUSES:
                raise InvalidStateError(
                    f"Cannot edit a campaign that is {campaign.status.value}",
                    current_state=campaign.status.value,
                    attempted="update",
                )

            for key, value in changes.items():
                if key == "title":
                    value = validate_required_text(value, "title", self.config.max_title_length)
                elif key == "budget_per_influencer":
                    value = validate_amount(value, key)
                elif key == "meal_value":
                    value = validate_amount(value, key, allow_none=True)
                elif key == "max_influencers":
                    value = self._validate_capacity(value)
                    accepted = self.applications.count_accepted(campaign_id)
                    if value < accepted:
                        raise ValidationError(
                            f"max_influencers cannot be below the {accepted} accepted influencer(s)",
                            field=key,
                        )
                elif key == "deadline":
                    value = _utc(value)
                elif key == "target_tiers":
                    value = _tiers(value)
                else:
                    value = value or ""
                setattr(campaign, key, value)

            if campaign.status != CampaignStatus.DRAFT:
                self.lifecycle.require_publishable(campaign)
            return self.campaigns.save(campaign)

    def get_campaign(self, campaign_id: str) -> Campaign:
        return self.campaigns.require(campaign_id)

    def list_campaigns(
        self,
        status: Optional[CampaignStatus] = None,
        restaurant_id: Optional[str] = None,
        location: Optional[str] = None,
        tier: Optional[InfluencerTier] = None,
    ) -> list[Campaign]:
        """Filtered campaign listing, newest first."""
        filters = {}
        if status is not None:
            filters["status"] = parse_enum(CampaignStatus, status, "status").value
        if restaurant_id is not None:
            filters["restaurant_id"] = restaurant_id
        campaigns = self.campaigns.find(**filters)
        if location:
            needle = location.lower()
            campaigns = [c for c in campaigns if needle in (c.location or "").lower()]
        if tier is not None:
            tier = parse_enum(InfluencerTier, tier, "tier")
            campaigns = [c for c in campaigns if c.accepts_tier(tier)]
        return list(reversed(campaigns))

    def list_restaurant_campaigns(self, actor: Actor) -> list[Campaign]:
        require_role(actor, UserRole.RESTAURANT)
        restaurant = self.profiles.get_restaurant_for_user(actor.user_id)
        return self.list_campaigns(restaurant_id=restaurant.restaurant_id)

    def delete_campaign(self, actor: Actor, campaign_id: str) -> None:
        """Remove a campaign that never received an application."""
        with self.store.transaction():
            campaign = self.campaigns.require(campaign_id)
            self._check_owner(actor, campaign)
            if self.applications.find_by_campaign(campaign_id):
                raise ConflictError("Cannot delete campaign with existing applications")
            if not self.lifecycle.can_delete(campaign.status):
                raise InvalidStateError(
                    f"Cannot delete a campaign that is {campaign.status.value}",
                    current_state=campaign.status.value,
                    attempted="delete",
                )
            self.campaigns.delete(campaign_id)
        logger.info("Campaign deleted", extra={"campaign_id": campaign_id})

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def publish(self, actor: Actor, campaign_id: str) -> Campaign:
        return self._transition(actor, campaign_id, CampaignAction.PUBLISH)

    def open_applications(self, actor: Actor, campaign_id: str) -> Campaign:
        return self._transition(actor, campaign_id, CampaignAction.OPEN_APPLICATIONS)

    def start(self, actor: Actor, campaign_id: str) -> Campaign:
        return self._transition(actor, campaign_id, CampaignAction.START)

    def close(self, actor: Actor, campaign_id: str) -> Campaign:
        return self._transition(actor, campaign_id, CampaignAction.CLOSE)

    def complete(
        self,
        actor: Actor,
        campaign_id: str,
        commission_rate: Optional[float] = None,
    ) -> Campaign:
        """Complete the campaign and generate its commissions atomically."""
        with self.store.transaction():
            campaign = self._transition(actor, campaign_id, CampaignAction.COMPLETE)
            commissions = self.commission_calculator.generate_commissions(
                campaign_id, commission_rate
            )
        restaurant = self.profiles.restaurants.get(campaign.restaurant_id)
        self.dispatcher.dispatch(
            restaurant.user_id if restaurant else None,
            NotificationKind.CAMPAIGN_COMPLETED,
            {"campaign_title": campaign.title, "commission_count": len(commissions)},
        )
        return campaign

    def mark_paid(self, actor: Actor, campaign_id: str) -> Campaign:
        """Mark the campaign paid and settle its commissions."""
        with self.store.transaction():
            campaign = self._transition(actor, campaign_id, CampaignAction.MARK_PAID)
            self.commission_calculator.settle_campaign(campaign_id)
        return campaign

    def _transition(self, actor: Actor, campaign_id: str, action: CampaignAction) -> Campaign:
        with self.store.transaction():
            campaign = self.campaigns.lock(campaign_id)
            self._check_owner(actor, campaign)
            context = {}
            if action == CampaignAction.START:
                context["accepted_count"] = self.applications.count_accepted(campaign_id)
            target = self.lifecycle.target(campaign, action, context)
            previous = campaign.status
            campaign.status = target
            campaign = self.campaigns.save(campaign)
        self.lifecycle.record(campaign_id, action, previous, target, actor=actor.user_id)
        return campaign

    # =========================================================================
    # Discovery & statistics
    # =========================================================================

    def available_campaigns(
        self,
        actor: Actor,
        page: int = 1,
        page_size: Optional[int] = None,
        location: Optional[str] = None,
    ) -> dict:
        """Open campaigns for an influencer, annotated with tier matching."""
        require_role(actor, UserRole.INFLUENCER)
        influencer = self.profiles.get_influencer_for_user(actor.user_id)
        offset, limit = validate_pagination(page, page_size or self.config.available_page_size)

        campaigns = self.campaigns.find(status=[s.value for s in APPLY_OPEN_STATUSES])
        if location:
            needle = location.lower()
            campaigns = [c for c in campaigns if needle in (c.location or "").lower()]
        campaigns.reverse()

        applied = {
            a.campaign_id for a in self.applications.find_by_influencer(influencer.influencer_id)
        }
        now = datetime.now(timezone.utc)
        items = []
        for campaign in campaigns[offset:offset + limit]:
            entry = campaign.to_dict()
            entry["can_apply"] = campaign.accepts_tier(influencer.tier)
            entry["is_expired"] = campaign.is_expired(now)
            entry["days_remaining"] = campaign.days_remaining(now)
            entry["has_applied"] = campaign.campaign_id in applied
            items.append(entry)

        return {
            "campaigns": items,
            "influencer_tier": influencer.tier.value,
            "page": page,
            "page_size": limit,
            "total": len(campaigns),
        }

    def campaign_stats(self, actor: Actor) -> dict:
        """Campaign counts by status; restaurants see only their own."""
        require_role(actor, UserRole.RESTAURANT, UserRole.ADMIN)
        if actor.is_restaurant:
            restaurant = self.profiles.get_restaurant_for_user(actor.user_id)
            campaigns = self.campaigns.find_by_restaurant(restaurant.restaurant_id)
        else:
            campaigns = self.campaigns.find()

        by_status = {status.value: 0 for status in CampaignStatus}
        total_applications = 0
        accepted = 0
        for campaign in campaigns:
            by_status[campaign.status.value] += 1
            applications = self.applications.find_by_campaign(campaign.campaign_id)
            total_applications += len(applications)
            accepted += sum(1 for a in applications if a.status == ApplicationStatus.ACCEPTED)

        return {
            "total_campaigns": len(campaigns),
            "by_status": by_status,
            "total_budget": sum(c.budget_per_influencer * c.max_influencers for c in campaigns),
            "total_applications": total_applications,
            "accepted_applications": accepted,
            "currency": self.config.currency,
        }

    # =========================================================================
    # Helpers
    # =========================================================================

    def _check_owner(self, actor: Actor, campaign: Campaign) -> None:
        require_role(actor, UserRole.RESTAURANT, UserRole.ADMIN)
        if actor.is_admin:
            return
        restaurant = self.profiles.get_restaurant(campaign.restaurant_id)
        require_owner(actor, restaurant.user_id)

    def _validate_capacity(self, value) -> int:
        count = validate_count(value, "max_influencers", minimum=1)
        if count > self.config.max_influencers_limit:
            raise ValidationError(
                f"max_influencers must be <= {self.config.max_influencers_limit}",
                field="max_influencers",
            )
        return count
