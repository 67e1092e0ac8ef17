"""Tests for the FoodConnect REST API."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from src.api import DEFAULT_API_CONFIG, create_app
from src.api.app import build_store
from src.api.config import APIConfig
from src.notifications import InMemoryNotifier, NotificationKind
from src.persistence import EntityType, InMemoryStore, SQLAlchemyStore, StoreError
from src.settings import Settings, get_settings

PREFIX = DEFAULT_API_CONFIG.prefix

OWNER = {"X-User-Id": "rest-1", "X-User-Role": "restaurant"}
INFLUENCER = {"X-User-Id": "inf-1", "X-User-Role": "influencer"}
INFLUENCER_2 = {"X-User-Id": "inf-2", "X-User-Role": "influencer"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}


class BrokenStore(InMemoryStore):
    def find(self, entity_type, predicate=None, **filters):
        raise StoreError("disk I/O error")


@pytest.fixture
def api_notifier():
    return InMemoryNotifier()


@pytest.fixture
def client(api_notifier):
    app = create_app(store=InMemoryStore(), notifier=api_notifier, settings=Settings())
    return TestClient(app)


def _published_campaign(client, **overrides):
    client.post(f"{PREFIX}/restaurants/profile", json={"business_name": "Nasi Kandar"}, headers=OWNER)
    body = {
        "title": "Lunch Promo",
        "budget_per_influencer": 300,
        "requirements": "Two posts",
        "max_influencers": 1,
        "deadline": (datetime.now(timezone.utc) + timedelta(days=3)).isoformat(),
    }
    body.update(overrides)
    created = client.post(f"{PREFIX}/campaigns", json=body, headers=OWNER)
    assert created.status_code == 201
    campaign_id = created.json()["campaign_id"]
    assert client.post(f"{PREFIX}/campaigns/{campaign_id}/publish", headers=OWNER).status_code == 200
    return campaign_id


def _influencer(client, headers, **followers):
    response = client.post(
        f"{PREFIX}/influencers/profile",
        json={"display_name": f"Foodie {headers['X-User-Id']}", **followers},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


# =============================================================================
# App plumbing
# =============================================================================


class TestAppSetup:
    def test_config_defaults(self):
        config = APIConfig()
        assert config.title == "FoodConnect API"
        assert config.prefix == "/api/v1"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"]["store"] == "InMemoryStore"

    def test_security_and_tracing_headers(self, client):
        response = client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"
        assert response.headers["x-request-id"] == "trace-123"

    def test_missing_identity(self, client):
        response = client.get(f"{PREFIX}/campaigns")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"

    def test_unknown_role(self, client):
        response = client.get(f"{PREFIX}/campaigns", headers={"X-User-Id": "x", "X-User-Role": "chef"})
        assert response.status_code == 401

    def test_request_validation_envelope(self, client):
        response = client.post(
            f"{PREFIX}/restaurants/profile", json={"business_name": ""}, headers=OWNER
        )
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "business_name"

    def test_default_store_is_memory(self):
        app = create_app(settings=Settings())
        assert type(app.state.services.store).__name__ == "InMemoryStore"

    def test_database_store(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FOODCONNECT_DATABASE_URL", f"sqlite:///{tmp_path / 'foodconnect.db'}")
        monkeypatch.setattr("src.db.engine._sync_engine", None)
        get_settings.cache_clear()

        store = build_store(Settings(use_database=True))
        try:
            assert isinstance(store, SQLAlchemyStore)
            assert store.find(EntityType.CAMPAIGN) == []
        finally:
            store.engine.dispose()

    def test_store_failure_is_database_error(self):
        app = create_app(store=BrokenStore(), settings=Settings())
        response = TestClient(app).get(f"{PREFIX}/campaigns", headers=OWNER)
        assert response.status_code == 500
        assert response.json()["error"]["code"] == "DATABASE_ERROR"


# =============================================================================
# Profiles
# =============================================================================


class TestProfileRoutes:
    def test_restaurant_profile(self, client):
        created = client.post(
            f"{PREFIX}/restaurants/profile", json={"business_name": "Kopitiam"}, headers=OWNER
        )
        assert created.status_code == 201
        assert client.get(f"{PREFIX}/restaurants/me", headers=OWNER).json()["business_name"] == "Kopitiam"
        patched = client.patch(f"{PREFIX}/restaurants/me", json={"location": "Ipoh"}, headers=OWNER)
        assert patched.json()["location"] == "Ipoh"
        duplicate = client.post(
            f"{PREFIX}/restaurants/profile", json={"business_name": "Again"}, headers=OWNER
        )
        assert duplicate.status_code == 409

    def test_missing_profile(self, client):
        response = client.get(f"{PREFIX}/restaurants/me", headers=OWNER)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PROFILE_NOT_FOUND"

    def test_influencer_tier(self, client):
        data = _influencer(client, INFLUENCER, instagram_followers=12_000, tiktok_followers=60_000)
        assert data["tier"] == "major"
        patched = client.patch(
            f"{PREFIX}/influencers/me", json={"tiktok_followers": 0}, headers=INFLUENCER
        )
        assert patched.json()["tier"] == "established"

    def test_tier_not_writable(self, client):
        _influencer(client, INFLUENCER)
        response = client.patch(f"{PREFIX}/influencers/me", json={"tier": "mega"}, headers=INFLUENCER)
        assert response.status_code == 400

    def test_follower_update_flow(self, client, api_notifier):
        _influencer(client, INFLUENCER, instagram_followers=1_000)
        created = client.post(
            f"{PREFIX}/influencers/me/follower-updates",
            json={"platform": "instagram", "requested_count": 120_000},
            headers=INFLUENCER,
        )
        assert created.status_code == 201
        request_id = created.json()["request_id"]

        forbidden = client.post(
            f"{PREFIX}/influencers/follower-updates/{request_id}/review",
            json={"approve": True},
            headers=INFLUENCER,
        )
        assert forbidden.status_code == 403

        reviewed = client.post(
            f"{PREFIX}/influencers/follower-updates/{request_id}/review",
            json={"approve": True},
            headers=ADMIN,
        )
        assert reviewed.json()["status"] == "approved"
        assert client.get(f"{PREFIX}/influencers/me", headers=INFLUENCER).json()["tier"] == "mega"
        assert api_notifier.sent_to("inf-1", NotificationKind.FOLLOWER_UPDATE_REVIEWED)

    def test_influencer_listing_and_stats(self, client):
        _influencer(client, INFLUENCER, instagram_followers=6_000)
        _influencer(client, INFLUENCER_2)
        listed = client.get(f"{PREFIX}/influencers", params={"tier": "growing"}, headers=OWNER)
        assert len(listed.json()) == 1
        stats = client.get(f"{PREFIX}/influencers/stats", headers=ADMIN).json()
        assert stats["total_influencers"] == 2


# =============================================================================
# Campaign, application and commission flow
# =============================================================================


class TestMarketplaceFlow:
    def test_end_to_end(self, client):
        campaign_id = _published_campaign(client)
        _influencer(client, INFLUENCER)
        _influencer(client, INFLUENCER_2)

        available = client.get(f"{PREFIX}/campaigns/available", headers=INFLUENCER).json()
        assert available["total"] == 1
        assert available["campaigns"][0]["can_apply"] is True

        first = client.post(
            f"{PREFIX}/applications", json={"campaign_id": campaign_id, "message": "Hi"}, headers=INFLUENCER
        )
        assert first.status_code == 201
        second = client.post(f"{PREFIX}/applications", json={"campaign_id": campaign_id}, headers=INFLUENCER_2)
        assert second.status_code == 201

        duplicate = client.post(f"{PREFIX}/applications", json={"campaign_id": campaign_id}, headers=INFLUENCER)
        assert duplicate.status_code == 409
        assert duplicate.json()["error"]["code"] == "DUPLICATE_APPLICATION"

        accepted = client.put(
            f"{PREFIX}/applications/{first.json()['application_id']}/status",
            json={"status": "accepted"},
            headers=OWNER,
        )
        assert accepted.json()["status"] == "accepted"

        full = client.put(
            f"{PREFIX}/applications/{second.json()['application_id']}/status",
            json={"status": "accepted"},
            headers=OWNER,
        )
        assert full.status_code == 409
        assert full.json()["error"]["code"] == "CAPACITY_EXCEEDED"

        campaign = client.get(f"{PREFIX}/campaigns/{campaign_id}", headers=OWNER).json()
        assert campaign["status"] == "in_progress"

        completed = client.post(
            f"{PREFIX}/campaigns/{campaign_id}/complete", json={"commission_rate": 10}, headers=OWNER
        )
        assert completed.status_code == 200
        body = completed.json()
        assert body["campaign"]["status"] == "completed"
        assert len(body["commissions"]) == 1
        assert body["commissions"][0]["commission_amount"] == 30.0

        commission_id = body["commissions"][0]["commission_id"]
        approved = client.put(
            f"{PREFIX}/commissions/{commission_id}/status", json={"status": "approved"}, headers=OWNER
        )
        assert approved.json()["status"] == "approved"

        listing = client.get(f"{PREFIX}/commissions", headers=INFLUENCER).json()
        assert listing["summary"]["total"] == 1
        assert client.get(f"{PREFIX}/commissions", headers=INFLUENCER_2).json()["summary"]["total"] == 0

        export = client.get(f"{PREFIX}/commissions/export", headers=OWNER)
        assert export.status_code == 200
        assert export.headers["content-type"].startswith("text/csv")
        assert "Lunch Promo" in export.text

        paid = client.post(f"{PREFIX}/campaigns/{campaign_id}/mark-paid", headers=ADMIN)
        assert paid.json()["status"] == "paid"
        stats = client.get(f"{PREFIX}/commissions/stats", headers=OWNER).json()
        assert stats["by_status"]["paid"]["count"] == 1

    def test_expired_campaign_returns_410(self, client):
        campaign_id = _published_campaign(
            client, deadline=(datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
        )
        _influencer(client, INFLUENCER)
        response = client.post(f"{PREFIX}/applications", json={"campaign_id": campaign_id}, headers=INFLUENCER)
        assert response.status_code == 410
        assert response.json()["error"]["code"] == "DEADLINE_PASSED"

    def test_withdraw(self, client):
        campaign_id = _published_campaign(client)
        _influencer(client, INFLUENCER)
        application = client.post(
            f"{PREFIX}/applications", json={"campaign_id": campaign_id}, headers=INFLUENCER
        ).json()
        assert client.get(f"{PREFIX}/applications/mine", headers=INFLUENCER).json()[0]["campaign"]["title"] == "Lunch Promo"
        response = client.delete(f"{PREFIX}/applications/{application['application_id']}", headers=INFLUENCER)
        assert response.status_code == 200
        assert client.get(f"{PREFIX}/applications/mine", headers=INFLUENCER).json() == []

    def test_delete_campaign_with_applications(self, client):
        campaign_id = _published_campaign(client)
        _influencer(client, INFLUENCER)
        client.post(f"{PREFIX}/applications", json={"campaign_id": campaign_id}, headers=INFLUENCER)
        response = client.delete(f"{PREFIX}/campaigns/{campaign_id}", headers=OWNER)
        assert response.status_code == 409

    def test_invalid_transition(self, client):
        campaign_id = _published_campaign(client)
        response = client.post(f"{PREFIX}/campaigns/{campaign_id}/complete", headers=OWNER)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_STATE"

    def test_not_found(self, client):
        response = client.get(f"{PREFIX}/campaigns/does-not-exist", headers=OWNER)
        assert response.status_code == 404

    def test_wrong_role(self, client):
        campaign_id = _published_campaign(client)
        response = client.post(f"{PREFIX}/campaigns/{campaign_id}/close", headers=INFLUENCER)
        assert response.status_code == 403

    def test_campaign_stats_and_mine(self, client):
        _published_campaign(client)
        assert len(client.get(f"{PREFIX}/campaigns/mine", headers=OWNER).json()) == 1
        stats = client.get(f"{PREFIX}/campaigns/stats", headers=OWNER).json()
        assert stats["by_status"]["published"] == 1

    def test_campaign_detail_lists_actions(self, client):
        campaign_id = _published_campaign(client)
        campaign = client.get(f"{PREFIX}/campaigns/{campaign_id}", headers=OWNER).json()
        assert campaign["status_label"]
        assert "close" in campaign["available_actions"]
        assert "publish" not in campaign["available_actions"]
        assert campaign["can_delete"] is True

    def test_lifecycle_graph(self, client):
        graph = client.get(f"{PREFIX}/campaigns/lifecycle", headers=OWNER).json()
        assert graph["draft"] == ["published"]
        assert "closed" in graph["published"]

    def test_published_campaign_cannot_drop_requirements(self, client):
        campaign_id = _published_campaign(client)
        response = client.patch(
            f"{PREFIX}/campaigns/{campaign_id}", json={"requirements": ""}, headers=OWNER
        )
        assert response.status_code == 400
        campaign = client.get(f"{PREFIX}/campaigns/{campaign_id}", headers=OWNER).json()
        assert campaign["requirements"] == "Two posts"


# =============================================================================
# Messages
# =============================================================================


class TestMessageRoutes:
    def _thread(self, client):
        campaign_id = _published_campaign(client)
        _influencer(client, INFLUENCER)
        client.post(f"{PREFIX}/applications", json={"campaign_id": campaign_id}, headers=INFLUENCER)
        return campaign_id

    def test_send_and_read(self, client, api_notifier):
        campaign_id = self._thread(client)
        sent = client.post(
            f"{PREFIX}/messages",
            json={"receiver_id": "inf-1", "content": "See you Saturday", "campaign_id": campaign_id},
            headers=OWNER,
        )
        assert sent.status_code == 201
        assert api_notifier.sent_to("inf-1", NotificationKind.MESSAGE_RECEIVED)

        unread = client.get(f"{PREFIX}/messages/unread-count", headers=INFLUENCER).json()
        assert unread == {"unread_count": 1}

        conversations = client.get(f"{PREFIX}/messages/conversations", headers=INFLUENCER).json()
        assert conversations[0]["other_user_id"] == "rest-1"
        assert conversations[0]["campaign_title"] == "Lunch Promo"

        thread = client.get(f"{PREFIX}/messages/conversations/rest-1", headers=INFLUENCER).json()
        assert [m["content"] for m in thread] == ["See you Saturday"]

        read = client.post(f"{PREFIX}/messages/{sent.json()['message_id']}/read", headers=INFLUENCER)
        assert read.json()["status"] == "read"
        assert client.get(f"{PREFIX}/messages/stats", headers=INFLUENCER).json()["unread"] == 0

    def test_mark_conversation_read(self, client):
        campaign_id = self._thread(client)
        for text in ("One", "Two"):
            client.post(
                f"{PREFIX}/messages",
                json={"receiver_id": "inf-1", "content": text, "campaign_id": campaign_id},
                headers=OWNER,
            )
        response = client.post(f"{PREFIX}/messages/conversations/rest-1/read", headers=INFLUENCER)
        assert response.json() == {"marked_read": 2}

    def test_stranger_forbidden(self, client):
        campaign_id = self._thread(client)
        _influencer(client, INFLUENCER_2)
        response = client.post(
            f"{PREFIX}/messages",
            json={"receiver_id": "rest-1", "content": "Hi", "campaign_id": campaign_id},
            headers=INFLUENCER_2,
        )
        assert response.status_code == 403

    def test_system_message_admin_only(self, client):
        body = {"receiver_id": "inf-1", "content": "Welcome"}
        assert client.post(f"{PREFIX}/messages/system", json=body, headers=OWNER).status_code == 403
        response = client.post(f"{PREFIX}/messages/system", json=body, headers=ADMIN)
        assert response.status_code == 201
        assert response.json()["is_system"] is True
