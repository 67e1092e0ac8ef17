"""Influencer profile and follower-update endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from src.api.dependencies import get_actor, get_services
from src.api.models import (
    FollowerUpdateCreateRequest,
    FollowerUpdateReviewRequest,
    InfluencerCreateRequest,
    InfluencerUpdateRequest,
)
from src.marketplace import Actor, MarketplaceServices

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/influencers", tags=["influencers"])


@router.post("/profile", status_code=201)
def create_influencer_profile(
    request: InfluencerCreateRequest,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    """Create the caller's influencer profile; the tier is derived."""
    fields = request.model_dump()
    display_name = fields.pop("display_name")
    influencer = services.profiles.create_influencer_profile(actor, display_name, **fields)
    return influencer.to_dict()


@router.get("/me")
def get_my_profile(
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.profiles.get_influencer_for_user(actor.user_id).to_dict()


@router.patch("/me")
def update_my_profile(
    request: InfluencerUpdateRequest,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    changes = request.model_dump(exclude_unset=True)
    return services.profiles.update_influencer_profile(actor, **changes).to_dict()


@router.get("")
def list_influencers(
    tier: Optional[str] = None,
    location: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> list[dict]:
    """Browse influencers by tier and location."""
    return [i.to_dict() for i in services.profiles.list_influencers(tier=tier, location=location)]


@router.get("/stats")
def platform_stats(
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.profiles.platform_stats()


@router.post("/me/follower-updates", status_code=201)
def request_follower_update(
    request: FollowerUpdateCreateRequest,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    """Ask an admin to confirm a new follower count."""
    update = services.profiles.request_follower_update(
        actor,
        request.platform,
        request.requested_count,
        request.evidence_url,
    )
    return update.to_dict()


@router.get("/follower-updates")
def list_follower_updates(
    status: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> list[dict]:
    return [r.to_dict() for r in services.profiles.list_follower_updates(actor, status=status)]


@router.post("/follower-updates/{request_id}/review")
def review_follower_update(
    request_id: str,
    request: FollowerUpdateReviewRequest,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    """Approve or reject a follower update (admin only)."""
    reviewed = services.profiles.review_follower_update(
        actor, request_id, request.approve, request.notes
    )
    return reviewed.to_dict()


@router.get("/{influencer_id}")
def get_influencer(
    influencer_id: str,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.profiles.get_influencer(influencer_id).to_dict()
