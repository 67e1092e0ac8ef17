"""Tests for marketplace notifications."""

import threading

from src.marketplace import MarketplaceServices
from src.notifications import (
    DeliveryStats,
    InMemoryNotifier,
    LoggingNotifier,
    Notification,
    NotificationConfig,
    NotificationDispatcher,
    NotificationKind,
    NotificationStatus,
    TEMPLATES,
)


class FailingNotifier:
    def notify(self, user_id, kind, payload):
        raise ConnectionError("smtp down")


class TestTemplates:
    def test_every_kind_has_template(self):
        for kind in NotificationKind:
            assert {"subject", "body"} <= set(TEMPLATES[kind])

    def test_rendering(self):
        notification = Notification(
            user_id="u1",
            kind=NotificationKind.APPLICATION_RECEIVED,
            payload={"campaign_title": "Satay Night", "influencer_name": "Ali"},
        )
        assert notification.subject == "New application for Satay Night"
        assert "Ali applied" in notification.body

    def test_missing_placeholder_left_in_place(self):
        notification = Notification(user_id="u1", kind=NotificationKind.COMMISSION_STATUS_CHANGED)
        assert notification.subject == "Commission {status}"
        assert notification.to_dict()["kind"] == "commission_status_changed"


class TestNotifiers:
    def test_in_memory_outbox(self):
        notifier = InMemoryNotifier()
        notifier.notify("u1", NotificationKind.APPLICATION_ACCEPTED, {"campaign_title": "A"})
        notifier.notify("u2", NotificationKind.APPLICATION_REJECTED, {"campaign_title": "B"})
        assert len(notifier.outbox) == 2
        assert notifier.outbox[0].status == NotificationStatus.SENT
        assert len(notifier.sent_to("u1")) == 1
        assert notifier.sent_to("u1", NotificationKind.APPLICATION_REJECTED) == []
        notifier.clear()
        assert notifier.outbox == []

    def test_outbox_bounded(self):
        notifier = InMemoryNotifier(NotificationConfig(max_outbox=2))
        for i in range(5):
            notifier.notify(f"u{i}", NotificationKind.APPLICATION_ACCEPTED, {})
        assert [n.user_id for n in notifier.outbox] == ["u3", "u4"]

    def test_logging_notifier_does_not_raise(self):
        LoggingNotifier().notify("u1", NotificationKind.CAMPAIGN_COMPLETED, {"campaign_title": "x"})


class TestDispatcher:
    def test_dispatch_success(self):
        notifier = InMemoryNotifier()
        dispatcher = NotificationDispatcher(notifier)
        assert dispatcher.dispatch("u1", NotificationKind.APPLICATION_ACCEPTED, {}) is True
        assert dispatcher.get_stats().total_sent == 1

    def test_failure_is_swallowed(self):
        dispatcher = NotificationDispatcher(FailingNotifier())
        assert dispatcher.dispatch("u1", NotificationKind.APPLICATION_ACCEPTED, {}) is False
        stats = dispatcher.get_stats()
        assert stats.total_failed == 1
        assert stats.failure_rate == 100.0

    def test_no_recipient_or_disabled(self):
        notifier = InMemoryNotifier()
        assert NotificationDispatcher(notifier).dispatch(None, NotificationKind.APPLICATION_ACCEPTED, {}) is False
        disabled = NotificationDispatcher(notifier, NotificationConfig(enabled=False))
        assert disabled.dispatch("u1", NotificationKind.APPLICATION_ACCEPTED, {}) is False
        assert notifier.outbox == []

    def test_stats_dict(self):
        assert DeliveryStats(total_sent=3, total_failed=1).to_dict()["failure_rate"] == 25.0

    def test_counters_survive_concurrent_dispatch(self):
        dispatcher = NotificationDispatcher(InMemoryNotifier())

        def send():
            for _ in range(200):
                dispatcher.dispatch("u1", NotificationKind.MESSAGE_RECEIVED, {"preview": "hi"})

        threads = [threading.Thread(target=send) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert dispatcher.get_stats().total_sent == 1600

    def test_stats_are_a_snapshot(self):
        dispatcher = NotificationDispatcher(InMemoryNotifier())
        before = dispatcher.get_stats()
        dispatcher.dispatch("u1", NotificationKind.APPLICATION_ACCEPTED, {})
        assert before.total_sent == 0
        assert dispatcher.get_stats().total_sent == 1


class TestFailureDoesNotRollBack:
    def test_apply_survives_notifier_failure(self, store, owner, make_influencer):
        services = MarketplaceServices(store=store, notifier=FailingNotifier())
        services.profiles.create_restaurant_profile(owner, business_name="Cafe")
        campaign = services.campaigns.create_campaign(
            owner, title="x", budget_per_influencer=10, requirements="post"
        )
        services.campaigns.publish(owner, campaign.campaign_id)
        actor, _ = make_influencer()
        application = services.applications.apply(actor, campaign.campaign_id)
        accepted = services.applications.update_status(owner, application.application_id, "accepted")
        assert accepted.status.value == "accepted"
        assert services.dispatcher.get_stats().total_failed == 2
