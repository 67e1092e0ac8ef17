"""Record stores behind the marketplace core."""

from src.persistence.base import (
    ENTITY_ID_FIELDS,
    UNIQUE_KEYS,
    EntityType,
    Record,
    RecordNotFoundError,
    Store,
    StoreError,
    UniqueViolationError,
)
from src.persistence.memory import InMemoryStore
from src.persistence.sql import SQLAlchemyStore

__all__ = [
    "ENTITY_ID_FIELDS",
    "UNIQUE_KEYS",
    "EntityType",
    "Record",
    "RecordNotFoundError",
    "Store",
    "StoreError",
    "UniqueViolationError",
    "InMemoryStore",
    "SQLAlchemyStore",
]
