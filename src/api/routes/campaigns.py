"""Campaign endpoints: CRUD, lifecycle actions and discovery."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from src.api.dependencies import get_actor, get_services
from src.api.models import (
    CampaignCreateRequest,
    CampaignUpdateRequest,
    CompleteCampaignRequest,
    MessageResponse,
)
from src.marketplace import Actor, MarketplaceServices

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/campaigns", tags=["campaigns"])


@router.post("", status_code=201)
def create_campaign(
    request: CampaignCreateRequest,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    """Create a draft campaign."""
    campaign = services.campaigns.create_campaign(actor, **request.model_dump())
    return campaign.to_dict()


@router.get("")
def list_campaigns(
    status: Optional[str] = None,
    restaurant_id: Optional[str] = None,
    location: Optional[str] = None,
    tier: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> list[dict]:
    campaigns = services.campaigns.list_campaigns(
        status=status, restaurant_id=restaurant_id, location=location, tier=tier
    )
    return [c.to_dict() for c in campaigns]


@router.get("/mine")
def list_my_campaigns(
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> list[dict]:
    return [c.to_dict() for c in services.campaigns.list_restaurant_campaigns(actor)]


@router.get("/available")
def available_campaigns(
    page: int = 1,
    page_size: Optional[int] = None,
    location: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    """Open campaigns for the calling influencer with tier matching."""
    return services.campaigns.available_campaigns(
        actor, page=page, page_size=page_size, location=location
    )


@router.get("/stats")
def campaign_stats(
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.campaigns.campaign_stats(actor)


@router.get("/lifecycle")
def campaign_lifecycle(
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    """Campaign state graph as an adjacency list."""
    return services.lifecycle.visualize()


@router.get("/{campaign_id}")
def get_campaign(
    campaign_id: str,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    campaign = services.campaigns.get_campaign(campaign_id)
    lifecycle = services.lifecycle
    data = campaign.to_dict()
    data["available_actions"] = [a.value for a in lifecycle.available_actions(campaign.status)]
    data["can_delete"] = lifecycle.can_delete(campaign.status)
    return data


@router.patch("/{campaign_id}")
def update_campaign(
    campaign_id: str,
    request: CampaignUpdateRequest,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    changes = request.model_dump(exclude_unset=True)
    return services.campaigns.update_campaign(actor, campaign_id, **changes).to_dict()


@router.delete("/{campaign_id}", response_model=MessageResponse)
def delete_campaign(
    campaign_id: str,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> MessageResponse:
    services.campaigns.delete_campaign(actor, campaign_id)
    return MessageResponse(message="Campaign deleted")


# ── Lifecycle actions ────────────────────────────────────────────────


@router.post("/{campaign_id}/publish")
def publish_campaign(
    campaign_id: str,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.campaigns.publish(actor, campaign_id).to_dict()


@router.post("/{campaign_id}/open")
def open_applications(
    campaign_id: str,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.campaigns.open_applications(actor, campaign_id).to_dict()


@router.post("/{campaign_id}/start")
def start_campaign(
    campaign_id: str,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.campaigns.start(actor, campaign_id).to_dict()


@router.post("/{campaign_id}/complete")
def complete_campaign(
    campaign_id: str,
    request: Optional[CompleteCampaignRequest] = None,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    """Complete the campaign and generate commissions."""
    rate = request.commission_rate if request is not None else None
    campaign = services.campaigns.complete(actor, campaign_id, commission_rate=rate)
    commissions = services.commissions.commissions.find_by_campaign(campaign_id)
    return {
        "campaign": campaign.to_dict(),
        "commissions": [c.to_dict() for c in commissions],
    }


@router.post("/{campaign_id}/mark-paid")
def mark_campaign_paid(
    campaign_id: str,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.campaigns.mark_paid(actor, campaign_id).to_dict()


@router.post("/{campaign_id}/close")
def close_campaign(
    campaign_id: str,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.campaigns.close(actor, campaign_id).to_dict()


@router.get("/{campaign_id}/applications")
def list_campaign_applications(
    campaign_id: str,
    status: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> list[dict]:
    return services.applications.list_campaign_applications(actor, campaign_id, status=status)
