"""Direct messages between restaurants, influencers and admins.

Restaurants and influencers may message each other only about a campaign
they share: the restaurant owns it and the influencer has applied to it.
Admins may message anyone, and a user may always answer someone who has
already written to them. System messages come from a reserved sender id
and cannot be answered.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from src.api_errors import AuthorizationError, ValidationError, validate_required_text
from src.marketplace.access import require_role
from src.marketplace.config import (
    DEFAULT_MARKETPLACE_CONFIG,
    MarketplaceConfig,
    MessageStatus,
    UserRole,
)
from src.marketplace.influencers import ProfileManager
from src.marketplace.models import Actor, Campaign, Message
from src.marketplace.repositories import (
    ApplicationRepository,
    CampaignRepository,
    MessageRepository,
)
from src.notifications import NotificationDispatcher, NotificationKind
from src.persistence import Store

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 80


class MessageManager:
    """Sends, lists and marks messages for the calling user."""

    def __init__(
        self,
        store: Store,
        profiles: ProfileManager,
        dispatcher: Optional[NotificationDispatcher] = None,
        config: Optional[MarketplaceConfig] = None,
    ):
        self.store = store
        self.profiles = profiles
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.config = config or DEFAULT_MARKETPLACE_CONFIG
        self.messages = MessageRepository(store)
        self.campaigns = CampaignRepository(store)
        self.applications = ApplicationRepository(store)

    # =========================================================================
    # Sending
    # =========================================================================

    def send_message(
        self,
        actor: Actor,
        receiver_id: str,
        content: str,
        campaign_id: Optional[str] = None,
    ) -> Message:
        receiver_id = validate_required_text(receiver_id, "receiver_id", 64)
        content = validate_required_text(content, "content", self.config.max_chat_message_length)
        if receiver_id == actor.user_id:
            raise ValidationError("You cannot message yourself", field="receiver_id")
        if receiver_id == self.config.system_sender_id:
            raise ValidationError("System messages cannot be answered", field="receiver_id")

        campaign = self.campaigns.require(campaign_id) if campaign_id else None
        application_id = None
        if not actor.is_admin:
            application_id = self._check_can_message(actor, receiver_id, campaign)

        message = self.messages.insert(
            Message(
                sender_id=actor.user_id,
                receiver_id=receiver_id,
                content=content,
                campaign_id=campaign_id or None,
                application_id=application_id,
            )
        )
        logger.info(
            "Message %s sent from %s to %s",
            message.message_id,
            actor.user_id,
            receiver_id,
            extra={"campaign_id": message.campaign_id},
        )
        self._notify(message)
        return message

    def send_system_message(
        self,
        actor: Actor,
        receiver_id: str,
        content: str,
        campaign_id: Optional[str] = None,
    ) -> Message:
        """Post a platform announcement to one user. Admin only."""
        require_role(actor, UserRole.ADMIN)
        receiver_id = validate_required_text(receiver_id, "receiver_id", 64)
        content = validate_required_text(content, "content", self.config.max_chat_message_length)
        if campaign_id:
            self.campaigns.require(campaign_id)

        message = self.messages.insert(
            Message(
                sender_id=self.config.system_sender_id,
                receiver_id=receiver_id,
                content=f"{self.config.system_message_prefix}{content}",
                campaign_id=campaign_id or None,
                is_system=True,
            )
        )
        logger.info("System message %s sent to %s", message.message_id, receiver_id)
        self._notify(message)
        return message

    # =========================================================================
    # Reading
    # =========================================================================

    def get_conversation(
        self,
        actor: Actor,
        other_user_id: str,
        campaign_id: Optional[str] = None,
    ) -> list[Message]:
        """Every message exchanged with ``other_user_id``, oldest first."""
        if other_user_id == actor.user_id:
            raise ValidationError("You cannot message yourself", field="other_user_id")
        messages = self.messages.find_between(actor.user_id, other_user_id, campaign_id)
        return sorted(messages, key=lambda m: m.created_at)

    def list_conversations(self, actor: Actor) -> list[dict]:
        """One summary per (other user, campaign) thread, most recent first."""
        threads: dict[tuple, list[Message]] = {}
        for message in self.messages.find_for_user(actor.user_id):
            key = (message.other_party(actor.user_id), message.campaign_id)
            threads.setdefault(key, []).append(message)

        titles: dict[str, Optional[str]] = {}
        summaries = []
        for (other_user_id, campaign_id), messages in threads.items():
            last = messages[-1]
            if campaign_id and campaign_id not in titles:
                campaign = self.campaigns.get(campaign_id)
                titles[campaign_id] = campaign.title if campaign else None
            summaries.append({
                "other_user_id": other_user_id,
                "other_user_name": self._display_name(other_user_id),
                "campaign_id": campaign_id,
                "campaign_title": titles.get(campaign_id) if campaign_id else None,
                "last_message": last.content,
                "last_message_at": last.created_at.isoformat(),
                "unread_count": sum(
                    1
                    for m in messages
                    if m.receiver_id == actor.user_id and not m.is_read
                ),
            })
        summaries.sort(key=lambda s: s["last_message_at"], reverse=True)
        return summaries

    def unread_count(self, actor: Actor) -> int:
        return len(self.messages.find_unread(actor.user_id))

    def message_stats(self, actor: Actor) -> dict:
        messages = self.messages.find_for_user(actor.user_id)
        sent = [m for m in messages if m.sender_id == actor.user_id]
        received = [m for m in messages if m.receiver_id == actor.user_id]
        return {
            "total": len(messages),
            "sent": len(sent),
            "received": len(received),
            "unread": sum(1 for m in received if not m.is_read),
            "system": sum(1 for m in received if m.is_system),
            "conversations": len({(m.other_party(actor.user_id), m.campaign_id) for m in messages}),
        }

    # =========================================================================
    # Read receipts
    # =========================================================================

    def mark_as_read(self, actor: Actor, message_id: str) -> Message:
        """Mark one received message as read; already-read messages are unchanged."""
        with self.store.transaction():
            message = self.messages.lock(message_id)
            if message.receiver_id != actor.user_id:
                raise AuthorizationError("Only the recipient can mark a message as read")
            if message.is_read:
                return message
            self._mark(message)
            return self.messages.save(message)

    def mark_conversation_read(
        self,
        actor: Actor,
        other_user_id: str,
        campaign_id: Optional[str] = None,
    ) -> int:
        """Mark everything ``other_user_id`` sent the caller as read; returns the count."""
        with self.store.transaction():
            unread = self.messages.find_unread(actor.user_id, sender_id=other_user_id)
            if campaign_id is not None:
                unread = [m for m in unread if m.campaign_id == campaign_id]
            for message in unread:
                self._mark(message)
                self.messages.save(message)
        if unread:
            logger.info("%s read %d messages from %s", actor.user_id, len(unread), other_user_id)
        return len(unread)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _check_can_message(
        self,
        actor: Actor,
        receiver_id: str,
        campaign: Optional[Campaign],
    ) -> Optional[str]:
        """Return the linking application id, or raise if the pair may not talk."""
        if campaign is not None:
            application_id = self._campaign_link(actor, receiver_id, campaign)
            if application_id is not None:
                return application_id
        if self.messages.find(sender_id=receiver_id, receiver_id=actor.user_id):
            return None
        raise AuthorizationError("You are not authorized to message this user")

    def _campaign_link(self, actor: Actor, receiver_id: str, campaign: Campaign) -> Optional[str]:
        restaurant = self.profiles.restaurants.get(campaign.restaurant_id)
        if restaurant is None:
            return None
        if actor.is_restaurant and actor.user_id == restaurant.user_id:
            influencer_user_id = receiver_id
        elif actor.is_influencer and receiver_id == restaurant.user_id:
            influencer_user_id = actor.user_id
        else:
            return None
        influencer = self.profiles.influencers.find_by_user(influencer_user_id)
        if influencer is None:
            return None
        application = self.applications.find_for_pair(campaign.campaign_id, influencer.influencer_id)
        return application.application_id if application else None

    def _display_name(self, user_id: str) -> str:
        if user_id == self.config.system_sender_id:
            return "FoodConnect"
        restaurant = self.profiles.restaurants.find_by_user(user_id)
        if restaurant is not None:
            return restaurant.business_name
        influencer = self.profiles.influencers.find_by_user(user_id)
        if influencer is not None:
            return influencer.display_name
        return user_id

    @staticmethod
    def _mark(message: Message) -> None:
        message.status = MessageStatus.READ
        message.read_at = datetime.now(timezone.utc)

    def _notify(self, message: Message) -> None:
        preview = message.content[:PREVIEW_LENGTH]
        self.dispatcher.dispatch(
            message.receiver_id,
            NotificationKind.MESSAGE_RECEIVED,
            {"preview": preview, "message_id": message.message_id},
        )
