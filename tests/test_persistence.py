"""Tests for the record stores (in-memory and SQLAlchemy/SQLite)."""

import threading
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from src.api_errors import CapacityError, ConflictError
from src.db import init_db
from src.marketplace import Actor, ApplicationStatus, CampaignStatus, MarketplaceServices, UserRole
from src.persistence import (
    EntityType,
    InMemoryStore,
    RecordNotFoundError,
    SQLAlchemyStore,
    UniqueViolationError,
)


def _sqlite_store():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return SQLAlchemyStore(engine)


def _restaurant(record_id, user_id):
    now = datetime.now(timezone.utc)
    return {
        "restaurant_id": record_id,
        "user_id": user_id,
        "business_name": f"Restaurant {record_id}",
        "location": "",
        "cuisine_type": "",
        "phone": "",
        "description": "",
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request):
    if request.param == "memory":
        return InMemoryStore()
    return _sqlite_store()


class TestStoreContract:
    def test_insert_and_get(self, any_store):
        any_store.insert(EntityType.RESTAURANT, _restaurant("r1", "u1"))
        record = any_store.get(EntityType.RESTAURANT, "r1")
        assert record["user_id"] == "u1"
        assert record["created_at"].tzinfo is not None
        assert any_store.get(EntityType.RESTAURANT, "missing") is None

    def test_unique_user(self, any_store):
        any_store.insert(EntityType.RESTAURANT, _restaurant("r1", "u1"))
        with pytest.raises(UniqueViolationError) as exc_info:
            any_store.insert(EntityType.RESTAURANT, _restaurant("r2", "u1"))
        assert exc_info.value.fields == ("user_id",)

    def test_find_filters(self, any_store):
        for i in range(3):
            any_store.insert(EntityType.RESTAURANT, _restaurant(f"r{i}", f"u{i}"))
        assert len(any_store.find(EntityType.RESTAURANT)) == 3
        assert [r["restaurant_id"] for r in any_store.find(EntityType.RESTAURANT, user_id="u1")] == ["r1"]
        assert len(any_store.find(EntityType.RESTAURANT, user_id=["u0", "u2"])) == 2
        assert len(any_store.find(EntityType.RESTAURANT, lambda r: r["user_id"] != "u0")) == 2

    def test_update(self, any_store):
        any_store.insert(EntityType.RESTAURANT, _restaurant("r1", "u1"))
        updated = any_store.update(EntityType.RESTAURANT, "r1", {"location": "Melaka"})
        assert updated["location"] == "Melaka"
        assert any_store.get(EntityType.RESTAURANT, "r1")["location"] == "Melaka"

    def test_update_missing(self, any_store):
        with pytest.raises(RecordNotFoundError):
            any_store.update(EntityType.RESTAURANT, "nope", {"location": "x"})

    def test_delete(self, any_store):
        any_store.insert(EntityType.RESTAURANT, _restaurant("r1", "u1"))
        any_store.delete(EntityType.RESTAURANT, "r1")
        assert any_store.get(EntityType.RESTAURANT, "r1") is None
        with pytest.raises(RecordNotFoundError):
            any_store.delete(EntityType.RESTAURANT, "r1")

    def test_transaction_rolls_back(self, any_store):
        with pytest.raises(RuntimeError):
            with any_store.transaction():
                any_store.insert(EntityType.RESTAURANT, _restaurant("r1", "u1"))
                raise RuntimeError("boom")
        assert any_store.get(EntityType.RESTAURANT, "r1") is None

    def test_transaction_commits(self, any_store):
        with any_store.transaction():
            any_store.insert(EntityType.RESTAURANT, _restaurant("r1", "u1"))
            any_store.insert(EntityType.RESTAURANT, _restaurant("r2", "u2"))
        assert len(any_store.find(EntityType.RESTAURANT)) == 2

    def test_lock_inside_transaction(self, any_store):
        any_store.insert(EntityType.RESTAURANT, _restaurant("r1", "u1"))
        with any_store.transaction():
            locked = any_store.lock(EntityType.RESTAURANT, "r1")
            assert locked["user_id"] == "u1"
            assert any_store.lock(EntityType.RESTAURANT, "missing") is None
            any_store.update(EntityType.RESTAURANT, "r1", {"location": "Penang"})
        assert any_store.get(EntityType.RESTAURANT, "r1")["location"] == "Penang"

    def test_nested_rollback_keeps_outer_writes(self, any_store):
        with any_store.transaction():
            any_store.insert(EntityType.RESTAURANT, _restaurant("r1", "u1"))
            with pytest.raises(RuntimeError):
                with any_store.transaction():
                    any_store.insert(EntityType.RESTAURANT, _restaurant("r2", "u2"))
                    raise RuntimeError("inner")
        assert any_store.get(EntityType.RESTAURANT, "r1") is not None


class TestInMemoryStore:
    def test_records_are_copies(self):
        store = InMemoryStore()
        record = _restaurant("r1", "u1")
        store.insert(EntityType.RESTAURANT, record)
        record["location"] = "changed"
        fetched = store.get(EntityType.RESTAURANT, "r1")
        fetched["location"] = "changed again"
        assert store.get(EntityType.RESTAURANT, "r1")["location"] == ""

    def test_count_and_clear(self):
        store = InMemoryStore()
        store.insert(EntityType.RESTAURANT, _restaurant("r1", "u1"))
        assert store.count(EntityType.RESTAURANT) == 1
        store.clear()
        assert store.count(EntityType.RESTAURANT) == 0

    def test_rollback_restores_only_written_tables(self):
        store = InMemoryStore()
        store.insert(EntityType.RESTAURANT, _restaurant("r1", "u1"))
        untouched = store._tables[EntityType.CAMPAIGN]
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.update(EntityType.RESTAURANT, "r1", {"location": "Ipoh"})
                store.delete(EntityType.RESTAURANT, "r1")
                raise RuntimeError("boom")
        assert store.get(EntityType.RESTAURANT, "r1")["location"] == ""
        assert store._tables[EntityType.CAMPAIGN] is untouched

    def test_read_only_transaction_saves_nothing(self):
        store = InMemoryStore()
        store.insert(EntityType.RESTAURANT, _restaurant("r1", "u1"))
        with store.transaction():
            store.get(EntityType.RESTAURANT, "r1")
            assert store._snapshots == [{}]
        assert store._snapshots == []

    def test_nested_rollback_discards_inner_writes(self):
        store = InMemoryStore()
        with store.transaction():
            store.insert(EntityType.RESTAURANT, _restaurant("r1", "u1"))
            with pytest.raises(RuntimeError):
                with store.transaction():
                    store.insert(EntityType.RESTAURANT, _restaurant("r2", "u2"))
                    raise RuntimeError("inner")
        assert store.get(EntityType.RESTAURANT, "r1") is not None
        assert store.get(EntityType.RESTAURANT, "r2") is None


class TestMarketplaceOnSqlite:
    """End-to-end lifecycle against the SQLAlchemy store."""

    def test_campaign_lifecycle(self, owner, notifier):
        services = MarketplaceServices(store=_sqlite_store(), notifier=notifier)
        services.profiles.create_restaurant_profile(owner, business_name="Satay Station")
        campaign = services.campaigns.create_campaign(
            owner,
            title="Satay Night",
            budget_per_influencer=400,
            requirements="Reel",
            target_tiers=["growing", "mega"],
        )
        services.campaigns.publish(owner, campaign.campaign_id)

        influencer_actor = Actor("inf-sql", UserRole.INFLUENCER)
        services.profiles.create_influencer_profile(
            influencer_actor, "SQL Foodie", instagram_followers=7_000
        )
        application = services.applications.apply(influencer_actor, campaign.campaign_id)
        accepted = services.applications.update_status(owner, application.application_id, "accepted")
        assert accepted.status == ApplicationStatus.ACCEPTED

        completed = services.campaigns.complete(owner, campaign.campaign_id)
        assert completed.status == CampaignStatus.COMPLETED
        stored = services.campaigns.get_campaign(campaign.campaign_id)
        assert [t.value for t in stored.target_tiers] == ["growing", "mega"]

        commissions = services.commissions.generate_commissions(campaign.campaign_id)
        assert len(commissions) == 1
        assert commissions[0].commission_amount == 60.0

    def test_duplicate_application_on_sqlite(self, owner):
        services = MarketplaceServices(store=_sqlite_store())
        services.profiles.create_restaurant_profile(owner, business_name="Cendol Cart")
        campaign = services.campaigns.create_campaign(
            owner, title="Cendol", budget_per_influencer=100, requirements="Post"
        )
        services.campaigns.publish(owner, campaign.campaign_id)
        actor = Actor("inf-dup", UserRole.INFLUENCER)
        services.profiles.create_influencer_profile(actor, "Dup")
        services.applications.apply(actor, campaign.campaign_id)
        with pytest.raises(ConflictError):
            services.applications.apply(actor, campaign.campaign_id)


# =============================================================================
# Concurrency
# =============================================================================


class RecordingStore(InMemoryStore):
    """In-memory store that remembers which rows were locked."""

    def __init__(self):
        super().__init__()
        self.locked = []

    def lock(self, entity_type, record_id):
        self.locked.append((entity_type, record_id))
        return super().lock(entity_type, record_id)


def _marketplace(store, applicants, max_influencers):
    services = MarketplaceServices(store=store)
    owner = Actor("rest-cc", UserRole.RESTAURANT)
    services.profiles.create_restaurant_profile(owner, business_name="Mamak Corner")
    campaign = services.campaigns.create_campaign(
        owner,
        title="Roti Canai Morning",
        budget_per_influencer=200,
        requirements="One reel",
        max_influencers=max_influencers,
    )
    services.campaigns.publish(owner, campaign.campaign_id)
    application_ids = []
    for i in range(applicants):
        actor = Actor(f"inf-cc-{i}", UserRole.INFLUENCER)
        services.profiles.create_influencer_profile(actor, f"Foodie {i}")
        application_ids.append(services.applications.apply(actor, campaign.campaign_id).application_id)
    return services, owner, campaign.campaign_id, application_ids


def _run_together(target, arguments):
    """Start one thread per argument behind a barrier; return their outcomes."""
    barrier = threading.Barrier(len(arguments))
    outcomes = []

    def run(argument):
        barrier.wait()
        try:
            outcomes.append(target(argument))
        except CapacityError:
            outcomes.append("full")

    threads = [threading.Thread(target=run, args=(a,)) for a in arguments]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return outcomes


class TestConcurrency:
    def test_concurrent_accepts_respect_capacity(self, any_store):
        services, owner, campaign_id, application_ids = _marketplace(any_store, 8, 2)

        outcomes = _run_together(
            lambda a: services.applications.update_status(owner, a, "accepted").status,
            application_ids,
        )

        assert outcomes.count(ApplicationStatus.ACCEPTED) == 2
        assert outcomes.count("full") == 6
        assert services.applications.applications.count_accepted(campaign_id) == 2

    def test_concurrent_generation_creates_one_commission_each(self, any_store):
        services, owner, campaign_id, application_ids = _marketplace(any_store, 2, 2)
        for application_id in application_ids:
            services.applications.update_status(owner, application_id, "accepted")
        # Completed without the automatic generation step
        any_store.update(EntityType.CAMPAIGN, campaign_id, {"status": "completed"})

        outcomes = _run_together(
            lambda _: services.commissions.generate_commissions(campaign_id),
            range(4),
        )

        assert [len(result) for result in outcomes] == [2, 2, 2, 2]
        stored = services.commissions.commissions.find_by_campaign(campaign_id)
        assert len(stored) == 2
        assert {c.commission_id for c in stored} == {c.commission_id for c in outcomes[0]}

    def test_capacity_paths_lock_the_campaign_row(self):
        store = RecordingStore()
        services, owner, campaign_id, application_ids = _marketplace(store, 1, 1)
        assert (EntityType.CAMPAIGN, campaign_id) in store.locked

        store.locked.clear()
        services.applications.update_status(owner, application_ids[0], "accepted")
        assert store.locked[:2] == [
            (EntityType.APPLICATION, application_ids[0]),
            (EntityType.CAMPAIGN, campaign_id),
        ]

        store.locked.clear()
        services.campaigns.complete(owner, campaign_id)
        assert store.locked and set(store.locked) == {(EntityType.CAMPAIGN, campaign_id)}
