"""Commission calculation and tracking.

Commissions are created only when a campaign completes, one per
accepted (campaign, influencer) pair. Generation is idempotent: the
check-and-create runs inside a store transaction and the store rejects
duplicate pairs, so retries never add records or change amounts.
"""

import csv
import io
import logging
from datetime import datetime, timezone
from typing import Optional

from src.api_errors import (
    ConflictError,
    InvalidStateError,
    validate_percentage,
)
from src.marketplace.access import require_owner, require_role
from src.marketplace.config import (
    COMMISSION_TRANSITIONS,
    DEFAULT_MARKETPLACE_CONFIG,
    ApplicationStatus,
    CampaignStatus,
    CommissionStatus,
    MarketplaceConfig,
    UserRole,
    parse_enum,
)
from src.marketplace.influencers import ProfileManager
from src.marketplace.models import Actor, Commission
from src.marketplace.repositories import (
    ApplicationRepository,
    CampaignRepository,
    CommissionRepository,
)
from src.notifications import NotificationDispatcher, NotificationKind
from src.persistence import Store

logger = logging.getLogger(__name__)

# Statuses in which commissions may be generated
GENERATION_STATUSES = frozenset({CampaignStatus.COMPLETED, CampaignStatus.PAID})

CSV_HEADERS = [
    "ID",
    "Campaign Title",
    "Influencer Name",
    "Campaign Amount (RM)",
    "Commission Rate (%)",
    "Commission Amount (RM)",
    "Status",
    "Created Date",
]


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compute_commission(campaign_amount: float, commission_rate: float) -> float:
    """Platform fee for one collaboration.

    Example:
        >>> compute_commission(500.0, 15.0)
        75.0
    """
    return campaign_amount * commission_rate / 100


class CommissionCalculator:
    """Generates commissions and manages their status."""

    def __init__(
        self,
        store: Store,
        profiles: ProfileManager,
        dispatcher: Optional[NotificationDispatcher] = None,
        config: Optional[MarketplaceConfig] = None,
    ):
        self.store = store
        self.profiles = profiles
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.config = config or DEFAULT_MARKETPLACE_CONFIG
        self.campaigns = CampaignRepository(store)
        self.applications = ApplicationRepository(store)
        self.commissions = CommissionRepository(store)

    # =========================================================================
    # Generation
    # =========================================================================

    def generate_commissions(
        self,
        campaign_id: str,
        commission_rate: Optional[float] = None,
    ) -> list[Commission]:
        """Create missing commissions for every accepted application.

        Returns every commission of the campaign, old and new.
        """
        rate = (
            self.config.default_commission_rate
            if commission_rate is None
            else validate_percentage(commission_rate)
        )
        created = 0
        with self.store.transaction():
            campaign = self.campaigns.lock(campaign_id)
            if campaign.status not in GENERATION_STATUSES:
                raise InvalidStateError(
                    f"Commissions are generated only for completed campaigns, not {campaign.status.value}",
                    current_state=campaign.status.value,
                    attempted="generate_commissions",
                )
            accepted = self.applications.find_by_campaign(
                campaign_id, ApplicationStatus.ACCEPTED
            )
            for application in accepted:
                if self.commissions.find_for_pair(campaign_id, application.influencer_id):
                    continue
                commission = Commission(
                    campaign_id=campaign_id,
                    restaurant_id=campaign.restaurant_id,
                    influencer_id=application.influencer_id,
                    application_id=application.application_id,
                    campaign_amount=campaign.budget_per_influencer,
                    commission_rate=rate,
                    commission_amount=compute_commission(campaign.budget_per_influencer, rate),
                )
                try:
                    self.commissions.insert(commission)
                except ConflictError:
                    # Created concurrently; the existing record stands
                    continue
                created += 1
                logger.info(
                    "Commission created: %.2f at %.1f%%",
                    commission.commission_amount,
                    rate,
                    extra={
                        "campaign_id": campaign_id,
                        "commission_id": commission.commission_id,
                        "influencer_id": commission.influencer_id,
                    },
                )

        if created == 0:
            logger.debug("No new commissions for campaign", extra={"campaign_id": campaign_id})
        return self.commissions.find_by_campaign(campaign_id)

    def settle_campaign(self, campaign_id: str) -> list[Commission]:
        """Mark every unpaid commission of a campaign as paid."""
        settled = []
        now = datetime.now(timezone.utc)
        with self.store.transaction():
            for commission in self.commissions.find_by_campaign(campaign_id):
                if commission.status == CommissionStatus.PAID:
                    continue
                commission.status = CommissionStatus.PAID
                commission.paid_at = now
                settled.append(self.commissions.save(commission))
        logger.info(
            "Settled %d commission(s)", len(settled), extra={"campaign_id": campaign_id}
        )
        return settled

    # =========================================================================
    # Status
    # =========================================================================

    def update_status(self, actor: Actor, commission_id: str, new_status) -> Commission:
        """Move a commission along pending -> approved -> paid."""
        require_role(actor, UserRole.RESTAURANT, UserRole.ADMIN)
        new_status = parse_enum(CommissionStatus, new_status, "status")
        with self.store.transaction():
            commission = self.commissions.require(commission_id)
            self._check_owner(actor, commission)
            if new_status not in COMMISSION_TRANSITIONS[commission.status]:
                raise InvalidStateError(
                    f"Cannot change commission from {commission.status.value} to {new_status.value}",
                    current_state=commission.status.value,
                    attempted=new_status.value,
                )
            previous = commission.status
            commission.status = new_status
            if new_status == CommissionStatus.PAID:
                commission.paid_at = datetime.now(timezone.utc)
            commission = self.commissions.save(commission)

        logger.info(
            "Commission status %s -> %s",
            previous.value,
            new_status.value,
            extra={
                "commission_id": commission_id,
                "from_status": previous.value,
                "to_status": new_status.value,
            },
        )
        campaign = self.campaigns.get(commission.campaign_id)
        influencer = self.profiles.influencers.get(commission.influencer_id)
        self.dispatcher.dispatch(
            influencer.user_id if influencer else None,
            NotificationKind.COMMISSION_STATUS_CHANGED,
            {
                "campaign_title": campaign.title if campaign else "",
                "status": new_status.value,
                "commission_amount": commission.commission_amount,
            },
        )
        return commission

    # =========================================================================
    # Queries
    # =========================================================================

    def get_commission(self, actor: Actor, commission_id: str) -> Commission:
        commission = self.commissions.require(commission_id)
        self._check_visible(actor, commission)
        return commission

    def list_commissions(
        self,
        actor: Actor,
        status: Optional[CommissionStatus] = None,
        campaign_id: Optional[str] = None,
    ) -> dict:
        """Commissions visible to the caller with a summary block."""
        commissions = self._visible_commissions(actor, status=status, campaign_id=campaign_id)
        return {
            "commissions": commissions,
            "summary": self._summarize(commissions),
        }

    def commission_stats(self, actor: Actor) -> dict:
        """Counts and amounts by status for the caller's commissions."""
        commissions = self._visible_commissions(actor)
        by_status = {
            status.value: {"count": 0, "amount": 0.0} for status in CommissionStatus
        }
        for commission in commissions:
            bucket = by_status[commission.status.value]
            bucket["count"] += 1
            bucket["amount"] += commission.commission_amount
        return {
            "total_commissions": len(commissions),
            "total_amount": sum(c.commission_amount for c in commissions),
            "total_campaign_amount": sum(c.campaign_amount for c in commissions),
            "by_status": by_status,
            "currency": self.config.currency,
        }

    def export_csv(
        self,
        actor: Actor,
        status: Optional[CommissionStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> str:
        """CSV report of the caller's commissions, oldest first."""
        commissions = self._visible_commissions(actor, status=status)
        start, end = _aware(start), _aware(end)
        if start is not None:
            commissions = [c for c in commissions if c.created_at >= start]
        if end is not None:
            commissions = [c for c in commissions if c.created_at <= end]

        titles: dict[str, str] = {}
        names: dict[str, str] = {}
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=CSV_HEADERS)
        writer.writeheader()
        for commission in commissions:
            if commission.campaign_id not in titles:
                campaign = self.campaigns.get(commission.campaign_id)
                titles[commission.campaign_id] = campaign.title if campaign else ""
            if commission.influencer_id not in names:
                influencer = self.profiles.influencers.get(commission.influencer_id)
                names[commission.influencer_id] = influencer.display_name if influencer else ""
            writer.writerow({
                "ID": commission.commission_id,
                "Campaign Title": titles[commission.campaign_id],
                "Influencer Name": names[commission.influencer_id],
                "Campaign Amount (RM)": f"{commission.campaign_amount:.2f}",
                "Commission Rate (%)": f"{commission.commission_rate:g}",
                "Commission Amount (RM)": f"{commission.commission_amount:.2f}",
                "Status": commission.status.value,
                "Created Date": commission.created_at.date().isoformat(),
            })
        return output.getvalue()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _visible_commissions(
        self,
        actor: Actor,
        status: Optional[CommissionStatus] = None,
        campaign_id: Optional[str] = None,
    ) -> list[Commission]:
        filters = {}
        if status is not None:
            filters["status"] = parse_enum(CommissionStatus, status, "status").value
        if campaign_id is not None:
            filters["campaign_id"] = campaign_id
        if actor.is_restaurant:
            restaurant = self.profiles.get_restaurant_for_user(actor.user_id)
            filters["restaurant_id"] = restaurant.restaurant_id
        elif actor.is_influencer:
            influencer = self.profiles.get_influencer_for_user(actor.user_id)
            filters["influencer_id"] = influencer.influencer_id
        return self.commissions.find(**filters)

    def _check_owner(self, actor: Actor, commission: Commission) -> None:
        if actor.is_admin:
            return
        restaurant = self.profiles.get_restaurant(commission.restaurant_id)
        require_owner(actor, restaurant.user_id)

    def _check_visible(self, actor: Actor, commission: Commission) -> None:
        if actor.is_influencer:
            influencer = self.profiles.get_influencer(commission.influencer_id)
            require_owner(actor, influencer.user_id)
        else:
            self._check_owner(actor, commission)

    @staticmethod
    def _summarize(commissions: list[Commission]) -> dict:
        summary = {
            "total": len(commissions),
            "total_amount": sum(c.commission_amount for c in commissions),
        }
        for status in CommissionStatus:
            summary[f"{status.value}_count"] = sum(
                1 for c in commissions if c.status == status
            )
        return summary
