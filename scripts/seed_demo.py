"""Seed a demo marketplace: one restaurant, three influencers, one campaign.

Walks a campaign through publish, apply, accept and complete so the
API has commissions to show.

Usage:
    python -m scripts.seed_demo
"""

import logging
from datetime import datetime, timedelta, timezone

from src.api.app import build_store
from src.marketplace import Actor, MarketplaceServices, UserRole
from src.settings import get_settings

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

INFLUENCERS = [
    ("demo-influencer-1", "Makan Bersama", {"instagram_followers": 8_500}),
    ("demo-influencer-2", "KL Food Trail", {"instagram_followers": 24_000, "tiktok_followers": 61_000}),
    ("demo-influencer-3", "Penang Eats", {"xhs_followers": 3_200}),
]


def seed(services: MarketplaceServices) -> dict:
    owner = Actor("demo-restaurant", UserRole.RESTAURANT)
    restaurant = services.profiles.create_restaurant_profile(
        owner,
        business_name="Nasi Lemak Corner",
        location="Kuala Lumpur",
        cuisine_type="Malaysian",
    )
    logger.info("Restaurant: %s", restaurant.business_name)

    campaign = services.campaigns.create_campaign(
        owner,
        title="Weekend Nasi Lemak Review",
        budget_per_influencer=500.0,
        meal_value=80.0,
        max_influencers=2,
        requirements="One Instagram post and one story",
        location="Kuala Lumpur",
        deadline=datetime.now(timezone.utc) + timedelta(days=14),
    )
    services.campaigns.publish(owner, campaign.campaign_id)

    applications = []
    for user_id, name, followers in INFLUENCERS:
        actor = Actor(user_id, UserRole.INFLUENCER)
        influencer = services.profiles.create_influencer_profile(actor, name, **followers)
        logger.info("Influencer %s: %s", name, influencer.tier.value)
        applications.append(
            services.applications.apply(actor, campaign.campaign_id, f"Hi from {name}")
        )

    services.applications.update_status(owner, applications[0].application_id, "accepted")
    services.applications.update_status(owner, applications[1].application_id, "accepted")
    services.applications.update_status(owner, applications[2].application_id, "rejected")

    services.campaigns.complete(owner, campaign.campaign_id)
    commissions = services.commissions.list_commissions(owner)
    logger.info(
        "Generated %d commission(s) totalling RM %.2f",
        commissions["summary"]["total"],
        commissions["summary"]["total_amount"],
    )
    return {"restaurant": restaurant, "campaign": campaign, "commissions": commissions}


if __name__ == "__main__":
    seed(MarketplaceServices(store=build_store(get_settings())))
