"""Wiring for the marketplace managers.

One ``MarketplaceServices`` instance shares a store, a notification
dispatcher and a lifecycle between all managers.
"""

from functools import cached_property
from typing import Optional

from src.marketplace.applications import ApplicationWorkflow
from src.marketplace.campaigns import CampaignManager
from src.marketplace.commissions import CommissionCalculator
from src.marketplace.config import DEFAULT_MARKETPLACE_CONFIG, MarketplaceConfig
from src.marketplace.influencers import ProfileManager
from src.marketplace.lifecycle import CampaignLifecycle
from src.marketplace.messages import MessageManager
from src.notifications import NotificationDispatcher, Notifier
from src.persistence import InMemoryStore, Store


class MarketplaceServices:
    def __init__(
        self,
        store: Optional[Store] = None,
        notifier: Optional[Notifier] = None,
        config: Optional[MarketplaceConfig] = None,
    ) -> None:
        self.store = store if store is not None else InMemoryStore()
        self.config = config or DEFAULT_MARKETPLACE_CONFIG
        self.dispatcher = NotificationDispatcher(notifier)
        self.lifecycle = CampaignLifecycle(history_limit=self.config.lifecycle_history_limit)

    @cached_property
    def profiles(self) -> ProfileManager:
        return ProfileManager(self.store, self.dispatcher, self.config)

    @cached_property
    def commissions(self) -> CommissionCalculator:
        return CommissionCalculator(self.store, self.profiles, self.dispatcher, self.config)

    @cached_property
    def campaigns(self) -> CampaignManager:
        return CampaignManager(
            self.store,
            self.profiles,
            self.commissions,
            self.dispatcher,
            self.config,
            self.lifecycle,
        )

    @cached_property
    def applications(self) -> ApplicationWorkflow:
        return ApplicationWorkflow(
            self.store,
            self.profiles,
            self.dispatcher,
            self.config,
            self.lifecycle,
        )

    @cached_property
    def messages(self) -> MessageManager:
        return MessageManager(self.store, self.profiles, self.dispatcher, self.config)
