"""Direct message endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from src.api.dependencies import get_actor, get_services
from src.api.models import MessageCreateRequest
from src.marketplace import Actor, MarketplaceServices

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("", status_code=201)
def send_message(
    request: MessageCreateRequest,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    message = services.messages.send_message(
        actor, request.receiver_id, request.content, campaign_id=request.campaign_id
    )
    return message.to_dict()


@router.post("/system", status_code=201)
def send_system_message(
    request: MessageCreateRequest,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    """Post a platform announcement. Admin only."""
    message = services.messages.send_system_message(
        actor, request.receiver_id, request.content, campaign_id=request.campaign_id
    )
    return message.to_dict()


@router.get("/conversations")
def list_conversations(
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> list[dict]:
    return services.messages.list_conversations(actor)


@router.get("/conversations/{other_user_id}")
def get_conversation(
    other_user_id: str,
    campaign_id: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> list[dict]:
    messages = services.messages.get_conversation(actor, other_user_id, campaign_id=campaign_id)
    return [m.to_dict() for m in messages]


@router.post("/conversations/{other_user_id}/read")
def mark_conversation_read(
    other_user_id: str,
    campaign_id: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    marked = services.messages.mark_conversation_read(actor, other_user_id, campaign_id=campaign_id)
    return {"marked_read": marked}


@router.get("/unread-count")
def unread_count(
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return {"unread_count": services.messages.unread_count(actor)}


@router.get("/stats")
def message_stats(
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.messages.message_stats(actor)


@router.post("/{message_id}/read")
def mark_message_read(
    message_id: str,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.messages.mark_as_read(actor, message_id).to_dict()
