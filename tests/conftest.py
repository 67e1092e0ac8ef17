"""Pytest configuration and shared fixtures."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.marketplace import Actor, MarketplaceServices, UserRole  # noqa: E402
from src.notifications import InMemoryNotifier  # noqa: E402
from src.persistence import InMemoryStore  # noqa: E402


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Isolate tests from FOODCONNECT_* variables and the settings cache."""
    from src.settings import get_settings

    monkeypatch.delenv("FOODCONNECT_USE_DATABASE", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def notifier():
    return InMemoryNotifier()


@pytest.fixture
def services(store, notifier):
    return MarketplaceServices(store=store, notifier=notifier)


@pytest.fixture
def owner():
    return Actor("rest-user-1", UserRole.RESTAURANT)


@pytest.fixture
def other_owner():
    return Actor("rest-user-2", UserRole.RESTAURANT)


@pytest.fixture
def admin():
    return Actor("admin-1", UserRole.ADMIN)


@pytest.fixture
def restaurant(services, owner):
    return services.profiles.create_restaurant_profile(
        owner, business_name="Nasi Lemak Corner", location="Kuala Lumpur"
    )


@pytest.fixture
def make_influencer(services):
    """Create an influencer profile and return (actor, influencer)."""
    counter = {"n": 0}

    def _make(**followers):
        counter["n"] += 1
        actor = Actor(f"inf-user-{counter['n']}", UserRole.INFLUENCER)
        influencer = services.profiles.create_influencer_profile(
            actor, f"Foodie {counter['n']}", **followers
        )
        return actor, influencer

    return _make


@pytest.fixture
def make_campaign(services, owner, restaurant):
    """Create (and by default publish) a campaign owned by ``owner``."""

    def _make(publish=True, **overrides):
        fields = {
            "title": "Weekend Review",
            "budget_per_influencer": 500.0,
            "requirements": "One post and one story",
            "max_influencers": 2,
            "deadline": datetime.now(timezone.utc) + timedelta(days=7),
        }
        fields.update(overrides)
        campaign = services.campaigns.create_campaign(owner, **fields)
        if publish:
            campaign = services.campaigns.publish(owner, campaign.campaign_id)
        return campaign

    return _make
