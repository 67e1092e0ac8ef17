"""Influencer applications to campaigns.

Capacity is enforced on the number of accepted applications. Both the
apply path and the accept path lock the campaign record, then run their
checks and the write inside a single store transaction, so concurrent
accepts cannot overfill a campaign even across processes.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from src.api_errors import (
    AuthorizationError,
    CapacityError,
    ConflictError,
    ErrorCode,
    ExpiredError,
    InvalidStateError,
    ValidationError,
)
from src.marketplace.access import require_owner, require_role
from src.marketplace.config import (
    APPLY_OPEN_STATUSES,
    DEFAULT_MARKETPLACE_CONFIG,
    REVIEW_OPEN_STATUSES,
    ApplicationStatus,
    CampaignStatus,
    MarketplaceConfig,
    UserRole,
    parse_enum,
)
from src.marketplace.influencers import ProfileManager
from src.marketplace.lifecycle import CampaignAction, CampaignLifecycle
from src.marketplace.models import Actor, Application, Campaign
from src.marketplace.repositories import ApplicationRepository, CampaignRepository
from src.notifications import NotificationDispatcher, NotificationKind
from src.persistence import Store

logger = logging.getLogger(__name__)

# Campaign statuses moved to in_progress by the first accept
AUTO_START_STATUSES = frozenset({CampaignStatus.PUBLISHED, CampaignStatus.APPLICATIONS_OPEN})


class ApplicationWorkflow:
    """Apply, review and withdraw applications."""

    def __init__(
        self,
        store: Store,
        profiles: ProfileManager,
        dispatcher: Optional[NotificationDispatcher] = None,
        config: Optional[MarketplaceConfig] = None,
        lifecycle: Optional[CampaignLifecycle] = None,
    ):
        self.store = store
        self.profiles = profiles
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.config = config or DEFAULT_MARKETPLACE_CONFIG
        self.lifecycle = lifecycle or CampaignLifecycle()
        self.campaigns = CampaignRepository(store)
        self.applications = ApplicationRepository(store)

    def apply(self, actor: Actor, campaign_id: str, message: str = "") -> Application:
        """Submit a pending application for the caller.

        Checks run in order and the first failure wins: campaign exists,
        campaign open, deadline in the future, influencer profile exists,
        no earlier application, free capacity.
        """
        require_role(actor, UserRole.INFLUENCER)
        message = (message or "").strip()
        if len(message) > self.config.max_message_length:
            raise ValidationError("message is too long", field="message")

        with self.store.transaction():
            campaign = self.campaigns.lock(campaign_id)
            if campaign.status not in APPLY_OPEN_STATUSES:
                raise InvalidStateError(
                    f"Campaign is not accepting applications ({campaign.status.value})",
                    current_state=campaign.status.value,
                    attempted="apply",
                )
            if campaign.is_expired():
                raise ExpiredError("Campaign deadline has passed")

            influencer = self.profiles.get_influencer_for_user(actor.user_id)

            if self.applications.find_for_pair(campaign_id, influencer.influencer_id):
                raise self._duplicate()

            self._check_capacity(campaign)

            application = self.applications.insert(
                Application(
                    campaign_id=campaign_id,
                    influencer_id=influencer.influencer_id,
                    message=message,
                )
            )

        logger.info(
            "Application submitted",
            extra={
                "campaign_id": campaign_id,
                "application_id": application.application_id,
                "influencer_id": influencer.influencer_id,
            },
        )
        self._notify_restaurant(
            campaign,
            NotificationKind.APPLICATION_RECEIVED,
            {"influencer_name": influencer.display_name, "application_id": application.application_id},
        )
        return application

    def update_status(self, actor: Actor, application_id: str, new_status) -> Application:
        """Accept or reject an application (owning restaurant only)."""
        require_role(actor, UserRole.RESTAURANT)
        new_status = parse_enum(ApplicationStatus, new_status, "status")
        if new_status == ApplicationStatus.PENDING:
            raise ValidationError("status must be accepted or rejected", field="status")

        started = None
        with self.store.transaction():
            application = self.applications.lock(application_id)
            # Serializes capacity checks across workers sharing the database
            campaign = self.campaigns.lock(application.campaign_id)
            restaurant = self.profiles.get_restaurant(campaign.restaurant_id)
            require_owner(actor, restaurant.user_id, allow_admin=False)

            if campaign.status not in REVIEW_OPEN_STATUSES:
                raise InvalidStateError(
                    f"Applications cannot be reviewed while the campaign is {campaign.status.value}",
                    current_state=campaign.status.value,
                    attempted=new_status.value,
                )
            if application.status == new_status:
                raise InvalidStateError(
                    f"Application is already {new_status.value}",
                    current_state=application.status.value,
                    attempted=new_status.value,
                )

            previous = application.status
            now = datetime.now(timezone.utc)
            if new_status == ApplicationStatus.ACCEPTED:
                self._check_capacity(campaign, exclude_id=application_id)
                application.accepted_at = now
                application.rejected_at = None
            else:
                application.rejected_at = now
                application.accepted_at = None
            application.status = new_status
            application = self.applications.save(application)

            if new_status == ApplicationStatus.ACCEPTED and campaign.status in AUTO_START_STATUSES:
                started = campaign.status
                campaign.status = self.lifecycle.target(
                    campaign,
                    CampaignAction.START,
                    {"accepted_count": self.applications.count_accepted(campaign.campaign_id)},
                )
                campaign = self.campaigns.save(campaign)

        logger.info(
            "Application %s -> %s",
            previous.value,
            new_status.value,
            extra={
                "campaign_id": campaign.campaign_id,
                "application_id": application_id,
                "from_status": previous.value,
                "to_status": new_status.value,
            },
        )
        if started is not None:
            self.lifecycle.record(
                campaign.campaign_id, CampaignAction.START, started, campaign.status,
                actor=actor.user_id,
            )

        influencer = self.profiles.influencers.get(application.influencer_id)
        kind = (
            NotificationKind.APPLICATION_ACCEPTED
            if new_status == ApplicationStatus.ACCEPTED
            else NotificationKind.APPLICATION_REJECTED
        )
        self.dispatcher.dispatch(
            influencer.user_id if influencer else None,
            kind,
            {"campaign_title": campaign.title, "application_id": application_id},
        )
        return application

    def withdraw(self, actor: Actor, application_id: str) -> None:
        """Delete the caller's own pending or rejected application."""
        require_role(actor, UserRole.INFLUENCER)
        with self.store.transaction():
            application = self.applications.require(application_id)
            influencer = self.profiles.get_influencer_for_user(actor.user_id)
            if application.influencer_id != influencer.influencer_id:
                raise AuthorizationError("You can only withdraw your own applications")
            if application.status == ApplicationStatus.ACCEPTED:
                raise InvalidStateError(
                    "Accepted applications cannot be withdrawn; contact the restaurant",
                    current_state=application.status.value,
                    attempted="withdraw",
                )
            self.applications.delete(application_id)
            campaign = self.campaigns.get(application.campaign_id)

        logger.info(
            "Application withdrawn",
            extra={"application_id": application_id, "campaign_id": application.campaign_id},
        )
        if campaign is not None:
            self._notify_restaurant(
                campaign,
                NotificationKind.APPLICATION_WITHDRAWN,
                {"influencer_name": influencer.display_name},
            )

    # =========================================================================
    # Queries
    # =========================================================================

    def get_application(self, actor: Actor, application_id: str) -> Application:
        """Visible to its influencer, the owning restaurant and admins."""
        application = self.applications.require(application_id)
        if actor.is_admin:
            return application
        if actor.is_influencer:
            influencer = self.profiles.get_influencer(application.influencer_id)
            require_owner(actor, influencer.user_id, allow_admin=False)
            return application
        campaign = self.campaigns.require(application.campaign_id)
        restaurant = self.profiles.get_restaurant(campaign.restaurant_id)
        require_owner(actor, restaurant.user_id, allow_admin=False)
        return application

    def list_campaign_applications(
        self,
        actor: Actor,
        campaign_id: str,
        status: Optional[ApplicationStatus] = None,
    ) -> list[dict]:
        """Applications on a campaign with the applicant's profile summary."""
        require_role(actor, UserRole.RESTAURANT, UserRole.ADMIN)
        campaign = self.campaigns.require(campaign_id)
        if not actor.is_admin:
            restaurant = self.profiles.get_restaurant(campaign.restaurant_id)
            require_owner(actor, restaurant.user_id, allow_admin=False)

        if status is not None:
            status = parse_enum(ApplicationStatus, status, "status")
        entries = []
        for application in self.applications.find_by_campaign(campaign_id, status):
            entry = application.to_dict()
            influencer = self.profiles.influencers.get(application.influencer_id)
            if influencer is not None:
                entry["influencer"] = {
                    "display_name": influencer.display_name,
                    "tier": influencer.tier.value,
                    "location": influencer.location,
                    "total_followers": influencer.total_followers,
                }
            entries.append(entry)
        return entries

    def list_my_applications(self, actor: Actor) -> list[dict]:
        """The caller's applications, newest first, with campaign summary."""
        require_role(actor, UserRole.INFLUENCER)
        influencer = self.profiles.get_influencer_for_user(actor.user_id)
        now = datetime.now(timezone.utc)
        entries = []
        for application in reversed(self.applications.find_by_influencer(influencer.influencer_id)):
            entry = application.to_dict()
            campaign = self.campaigns.get(application.campaign_id)
            if campaign is not None:
                entry["campaign"] = {
                    "title": campaign.title,
                    "status": campaign.status.value,
                    "budget_per_influencer": campaign.budget_per_influencer,
                    "deadline": campaign.deadline.isoformat() if campaign.deadline else None,
                    "is_expired": campaign.is_expired(now),
                }
            entries.append(entry)
        return entries

    def application_stats(self, actor: Actor, campaign_id: Optional[str] = None) -> dict:
        """Application counts by status within the caller's scope."""
        filters = {}
        if campaign_id is not None:
            campaign = self.campaigns.require(campaign_id)
            if actor.is_restaurant:
                restaurant = self.profiles.get_restaurant(campaign.restaurant_id)
                require_owner(actor, restaurant.user_id, allow_admin=False)
            filters["campaign_id"] = campaign_id

        if actor.is_influencer:
            influencer = self.profiles.get_influencer_for_user(actor.user_id)
            filters["influencer_id"] = influencer.influencer_id
            applications = self.applications.find(**filters)
        elif actor.is_restaurant and campaign_id is None:
            restaurant = self.profiles.get_restaurant_for_user(actor.user_id)
            owned = {c.campaign_id for c in self.campaigns.find_by_restaurant(restaurant.restaurant_id)}
            applications = [a for a in self.applications.find() if a.campaign_id in owned]
        else:
            applications = self.applications.find(**filters)

        by_status = {status.value: 0 for status in ApplicationStatus}
        for application in applications:
            by_status[application.status.value] += 1
        return {"total": len(applications), "by_status": by_status}

    # =========================================================================
    # Helpers
    # =========================================================================

    def _check_capacity(self, campaign: Campaign, exclude_id: Optional[str] = None) -> None:
        accepted = self.applications.count_accepted(campaign.campaign_id, exclude_id=exclude_id)
        if accepted >= campaign.max_influencers:
            raise CapacityError(
                "Campaign has reached maximum number of influencers",
                max_influencers=campaign.max_influencers,
            )

    def _duplicate(self) -> ConflictError:
        return ConflictError(
            "You have already applied to this campaign", ErrorCode.DUPLICATE_APPLICATION
        )

    def _notify_restaurant(self, campaign: Campaign, kind: NotificationKind, payload: dict) -> None:
        restaurant = self.profiles.restaurants.get(campaign.restaurant_id)
        self.dispatcher.dispatch(
            restaurant.user_id if restaurant else None,
            kind,
            {"campaign_title": campaign.title, "campaign_id": campaign.campaign_id, **payload},
        )
