"""Persistence store contract.

Records are plain dicts keyed by the entity's id field. Enum values are
stored as their string values and timestamps as timezone-aware datetimes.
"""

from contextlib import AbstractContextManager
from enum import Enum
from typing import Any, Callable, Optional, Protocol


class EntityType(Enum):
    """Record collections known to the store."""
    RESTAURANT = "restaurants"
    INFLUENCER = "influencers"
    CAMPAIGN = "campaigns"
    APPLICATION = "applications"
    COMMISSION = "commissions"
    FOLLOWER_UPDATE_REQUEST = "follower_update_requests"
    MESSAGE = "messages"


ENTITY_ID_FIELDS: dict[EntityType, str] = {
    EntityType.RESTAURANT: "restaurant_id",
    EntityType.INFLUENCER: "influencer_id",
    EntityType.CAMPAIGN: "campaign_id",
    EntityType.APPLICATION: "application_id",
    EntityType.COMMISSION: "commission_id",
    EntityType.FOLLOWER_UPDATE_REQUEST: "request_id",
    EntityType.MESSAGE: "message_id",
}

# Field tuples that must be unique within a collection
UNIQUE_KEYS: dict[EntityType, list[tuple[str, ...]]] = {
    EntityType.RESTAURANT: [("user_id",)],
    EntityType.INFLUENCER: [("user_id",)],
    EntityType.APPLICATION: [("campaign_id", "influencer_id")],
    EntityType.COMMISSION: [("campaign_id", "influencer_id")],
}

Record = dict[str, Any]
Predicate = Callable[[Record], bool]


class StoreError(Exception):
    """Base class for store failures."""


class UniqueViolationError(StoreError):
    """An insert or update would break a uniqueness constraint."""

    def __init__(self, entity_type: EntityType, fields: tuple[str, ...], values: tuple = ()):
        self.entity_type = entity_type
        self.fields = fields
        self.values = values
        super().__init__(
            f"Duplicate {entity_type.value} record for {', '.join(fields)}"
        )


class RecordNotFoundError(StoreError):
    """The addressed record does not exist."""

    def __init__(self, entity_type: EntityType, record_id: str):
        self.entity_type = entity_type
        self.record_id = record_id
        super().__init__(f"No {entity_type.value} record with id {record_id}")


class Store(Protocol):
    """Record storage used by the marketplace core."""

    def get(self, entity_type: EntityType, record_id: str) -> Optional[Record]:
        ...

    def lock(self, entity_type: EntityType, record_id: str) -> Optional[Record]:
        """Read a record and hold its write lock until the enclosing
        transaction ends. Concurrent lockers of the same record wait.
        """
        ...

    def find(
        self,
        entity_type: EntityType,
        predicate: Optional[Predicate] = None,
        **filters: Any,
    ) -> list[Record]:
        ...

    def insert(self, entity_type: EntityType, record: Record) -> Record:
        ...

    def update(self, entity_type: EntityType, record_id: str, patch: Record) -> Record:
        ...

    def delete(self, entity_type: EntityType, record_id: str) -> None:
        ...

    def transaction(self) -> AbstractContextManager:
        ...


def id_field(entity_type: EntityType) -> str:
    return ENTITY_ID_FIELDS[entity_type]


def matches(record: Record, predicate: Optional[Predicate], filters: dict) -> bool:
    """Check a record against equality filters and an optional predicate."""
    for key, expected in filters.items():
        value = record.get(key)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return predicate is None or bool(predicate(record))


def sort_records(records: list[Record]) -> list[Record]:
    """Order records oldest first; records without created_at go last."""
    return sorted(
        records,
        key=lambda r: (r.get("created_at") is None, r.get("created_at") or ""),
    )
