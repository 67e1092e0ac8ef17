"""Typed repositories over the record store.

Each repository converts store records to entities and translates store
failures into marketplace errors, so nothing above this layer sees
``StoreError`` subclasses.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Generic, Iterable, Optional, Type, TypeVar

from src.api_errors import ConflictError, DatabaseError, ErrorCode, NotFoundError
from src.marketplace.config import ApplicationStatus, InfluencerTier, MessageStatus
from src.marketplace.models import (
    Application,
    Campaign,
    Commission,
    FollowerUpdateRequest,
    Influencer,
    Message,
    Restaurant,
    from_record,
    to_record,
)
from src.persistence import (
    ENTITY_ID_FIELDS,
    EntityType,
    RecordNotFoundError,
    Store,
    StoreError,
    UniqueViolationError,
)

logger = logging.getLogger(__name__)

E = TypeVar("E")


class BaseRepository(Generic[E]):
    entity_type: EntityType
    entity_class: Type[E]
    label: str = "Record"
    duplicate_message: str = "Record already exists"
    duplicate_code: ErrorCode = ErrorCode.RESOURCE_CONFLICT

    def __init__(self, store: Store) -> None:
        self.store = store

    @property
    def id_field(self) -> str:
        return ENTITY_ID_FIELDS[self.entity_type]

    @contextmanager
    def _translated(self, entity_id: Optional[str] = None):
        try:
            yield
        except UniqueViolationError as exc:
            raise ConflictError(self.duplicate_message, self.duplicate_code) from exc
        except RecordNotFoundError as exc:
            raise self._not_found(entity_id or exc.record_id) from exc
        except StoreError as exc:
            logger.error(
                "Store failure on %s: %s",
                self.entity_type.value,
                exc,
                extra={"entity_type": self.entity_type.value},
            )
            raise DatabaseError(f"{self.label} could not be stored") from exc

    def _not_found(self, entity_id: str) -> NotFoundError:
        return NotFoundError(
            f"{self.label} not found",
            resource_type=self.entity_type.value,
            resource_id=entity_id,
        )

    def _to_entity(self, record: Optional[dict]) -> Optional[E]:
        if record is None:
            return None
        return from_record(self.entity_class, record)

    def get(self, entity_id: str) -> Optional[E]:
        with self._translated(entity_id):
            return self._to_entity(self.store.get(self.entity_type, entity_id))

    def require(self, entity_id: str) -> E:
        entity = self.get(entity_id)
        if entity is None:
            raise self._not_found(entity_id)
        return entity

    def lock(self, entity_id: str) -> E:
        """Fetch an entity and hold its write lock until the transaction ends."""
        with self._translated(entity_id):
            record = self.store.lock(self.entity_type, entity_id)
        if record is None:
            raise self._not_found(entity_id)
        return self._to_entity(record)

    def find(self, predicate: Optional[Callable[[dict], bool]] = None, **filters) -> list[E]:
        with self._translated():
            records = self.store.find(self.entity_type, predicate, **filters)
        return [self._to_entity(r) for r in records]

    def insert(self, entity: E) -> E:
        with self._translated():
            record = self.store.insert(self.entity_type, to_record(entity))
        return self._to_entity(record)

    def save(self, entity: E) -> E:
        """Write every field of an existing entity back to the store."""
        entity.updated_at = datetime.now(timezone.utc)
        record = to_record(entity)
        entity_id = record[self.id_field]
        with self._translated(entity_id):
            stored = self.store.update(self.entity_type, entity_id, record)
        return self._to_entity(stored)

    def delete(self, entity_id: str) -> None:
        with self._translated(entity_id):
            self.store.delete(self.entity_type, entity_id)


class RestaurantRepository(BaseRepository[Restaurant]):
    entity_type = EntityType.RESTAURANT
    entity_class = Restaurant
    label = "Restaurant profile"
    duplicate_message = "Restaurant profile already exists for this user"

    def find_by_user(self, user_id: str) -> Optional[Restaurant]:
        rows = self.find(user_id=user_id)
        return rows[0] if rows else None


class InfluencerRepository(BaseRepository[Influencer]):
    entity_type = EntityType.INFLUENCER
    entity_class = Influencer
    label = "Influencer profile"
    duplicate_message = "Influencer profile already exists for this user"

    def find_by_user(self, user_id: str) -> Optional[Influencer]:
        rows = self.find(user_id=user_id)
        return rows[0] if rows else None

    def find_by_tiers(self, tiers: Iterable[InfluencerTier]) -> list[Influencer]:
        return self.find(tier=[t.value for t in tiers])


class CampaignRepository(BaseRepository[Campaign]):
    entity_type = EntityType.CAMPAIGN
    entity_class = Campaign
    label = "Campaign"

    def find_by_restaurant(self, restaurant_id: str) -> list[Campaign]:
        return self.find(restaurant_id=restaurant_id)


class ApplicationRepository(BaseRepository[Application]):
    entity_type = EntityType.APPLICATION
    entity_class = Application
    label = "Application"
    duplicate_message = "You have already applied to this campaign"
    duplicate_code = ErrorCode.DUPLICATE_APPLICATION

    def find_by_campaign(self, campaign_id: str, status: Optional[ApplicationStatus] = None) -> list[Application]:
        if status is None:
            return self.find(campaign_id=campaign_id)
        return self.find(campaign_id=campaign_id, status=status.value)

    def find_by_influencer(self, influencer_id: str) -> list[Application]:
        return self.find(influencer_id=influencer_id)

    def find_for_pair(self, campaign_id: str, influencer_id: str) -> Optional[Application]:
        rows = self.find(campaign_id=campaign_id, influencer_id=influencer_id)
        return rows[0] if rows else None

    def count_accepted(self, campaign_id: str, exclude_id: Optional[str] = None) -> int:
        return sum(
            1
            for a in self.find_by_campaign(campaign_id, ApplicationStatus.ACCEPTED)
            if a.application_id != exclude_id
        )


class CommissionRepository(BaseRepository[Commission]):
    entity_type = EntityType.COMMISSION
    entity_class = Commission
    label = "Commission"
    duplicate_message = "Commission already exists for this campaign and influencer"

    def find_by_campaign(self, campaign_id: str) -> list[Commission]:
        return self.find(campaign_id=campaign_id)

    def find_for_pair(self, campaign_id: str, influencer_id: str) -> Optional[Commission]:
        rows = self.find(campaign_id=campaign_id, influencer_id=influencer_id)
        return rows[0] if rows else None


class FollowerUpdateRepository(BaseRepository[FollowerUpdateRequest]):
    entity_type = EntityType.FOLLOWER_UPDATE_REQUEST
    entity_class = FollowerUpdateRequest
    label = "Follower update request"

    def find_by_influencer(self, influencer_id: str) -> list[FollowerUpdateRequest]:
        return self.find(influencer_id=influencer_id)


class MessageRepository(BaseRepository[Message]):
    entity_type = EntityType.MESSAGE
    entity_class = Message
    label = "Message"

    def find_for_user(self, user_id: str) -> list[Message]:
        """Messages sent or received by ``user_id``, oldest first."""
        return self.find(lambda r: user_id in (r["sender_id"], r["receiver_id"]))

    def find_between(
        self,
        user_id: str,
        other_user_id: str,
        campaign_id: Optional[str] = None,
    ) -> list[Message]:
        pair = {user_id, other_user_id}
        filters = {"sender_id": list(pair), "receiver_id": list(pair)}
        if campaign_id is not None:
            filters["campaign_id"] = campaign_id
        return self.find(lambda r: r["sender_id"] != r["receiver_id"], **filters)

    def find_unread(self, receiver_id: str, sender_id: Optional[str] = None) -> list[Message]:
        filters = {"receiver_id": receiver_id, "status": MessageStatus.SENT.value}
        if sender_id is not None:
            filters["sender_id"] = sender_id
        return self.find(**filters)
