"""Application endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from src.api.dependencies import get_actor, get_services
from src.api.models import (
    ApplicationCreateRequest,
    ApplicationStatusRequest,
    MessageResponse,
)
from src.marketplace import Actor, MarketplaceServices

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/applications", tags=["applications"])


@router.post("", status_code=201)
def apply_to_campaign(
    request: ApplicationCreateRequest,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    """Apply to a campaign as the calling influencer."""
    application = services.applications.apply(actor, request.campaign_id, request.message)
    return application.to_dict()


@router.get("/mine")
def list_my_applications(
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> list[dict]:
    return services.applications.list_my_applications(actor)


@router.get("/stats")
def application_stats(
    campaign_id: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.applications.application_stats(actor, campaign_id=campaign_id)


@router.get("/{application_id}")
def get_application(
    application_id: str,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.applications.get_application(actor, application_id).to_dict()


@router.put("/{application_id}/status")
def update_application_status(
    application_id: str,
    request: ApplicationStatusRequest,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    """Accept or reject an application (owning restaurant)."""
    application = services.applications.update_status(actor, application_id, request.status)
    return application.to_dict()


@router.delete("/{application_id}", response_model=MessageResponse)
def withdraw_application(
    application_id: str,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> MessageResponse:
    services.applications.withdraw(actor, application_id)
    return MessageResponse(message="Application withdrawn")
