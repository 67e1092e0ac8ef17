"""Restaurant profile endpoints."""

import logging

from fastapi import APIRouter, Depends

from src.api.dependencies import get_actor, get_services
from src.api.models import RestaurantCreateRequest, RestaurantUpdateRequest
from src.marketplace import Actor, MarketplaceServices

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/restaurants", tags=["restaurants"])


@router.post("/profile", status_code=201)
def create_restaurant_profile(
    request: RestaurantCreateRequest,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    """Create the caller's restaurant profile."""
    restaurant = services.profiles.create_restaurant_profile(actor, **request.model_dump())
    return restaurant.to_dict()


@router.get("/me")
def get_my_restaurant(
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.profiles.get_restaurant_for_user(actor.user_id).to_dict()


@router.patch("/me")
def update_my_restaurant(
    request: RestaurantUpdateRequest,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    changes = request.model_dump(exclude_unset=True)
    return services.profiles.update_restaurant_profile(actor, **changes).to_dict()


@router.get("/{restaurant_id}")
def get_restaurant(
    restaurant_id: str,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.profiles.get_restaurant(restaurant_id).to_dict()
