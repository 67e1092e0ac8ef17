"""In-memory store for tests and local development."""

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Any, Optional

from src.persistence.base import (
    UNIQUE_KEYS,
    EntityType,
    Predicate,
    Record,
    RecordNotFoundError,
    UniqueViolationError,
    id_field,
    matches,
    sort_records,
)

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Dict-backed store with a single-writer lock.

    Records are copied on the way in and out so callers never share
    mutable state with the store. transaction() holds the lock for the
    whole block; a table is snapshotted the first time the block writes
    to it and restored if the block raises.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._tables: dict[EntityType, dict[str, Record]] = {
            entity_type: {} for entity_type in EntityType
        }
        # One dict of saved tables per open (nested) transaction
        self._snapshots: list[dict[EntityType, dict[str, Record]]] = []

    def get(self, entity_type: EntityType, record_id: str) -> Optional[Record]:
        with self._lock:
            record = self._tables[entity_type].get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def lock(self, entity_type: EntityType, record_id: str) -> Optional[Record]:
        # transaction() already holds the store-wide lock
        return self.get(entity_type, record_id)

    def find(
        self,
        entity_type: EntityType,
        predicate: Optional[Predicate] = None,
        **filters: Any,
    ) -> list[Record]:
        with self._lock:
            rows = [
                copy.deepcopy(r)
                for r in self._tables[entity_type].values()
                if matches(r, predicate, filters)
            ]
        return sort_records(rows)

    def insert(self, entity_type: EntityType, record: Record) -> Record:
        key = id_field(entity_type)
        with self._lock:
            table = self._tables[entity_type]
            record_id = record[key]
            if record_id in table:
                raise UniqueViolationError(entity_type, (key,), (record_id,))
            self._check_unique(entity_type, record, exclude_id=None)
            self._save_table(entity_type)
            table[record_id] = copy.deepcopy(record)
            return copy.deepcopy(record)

    def update(self, entity_type: EntityType, record_id: str, patch: Record) -> Record:
        with self._lock:
            table = self._tables[entity_type]
            current = table.get(record_id)
            if current is None:
                raise RecordNotFoundError(entity_type, record_id)
            merged = {**current, **copy.deepcopy(patch)}
            merged[id_field(entity_type)] = record_id
            self._check_unique(entity_type, merged, exclude_id=record_id)
            self._save_table(entity_type)
            table[record_id] = merged
            return copy.deepcopy(merged)

    def delete(self, entity_type: EntityType, record_id: str) -> None:
        with self._lock:
            if record_id not in self._tables[entity_type]:
                raise RecordNotFoundError(entity_type, record_id)
            self._save_table(entity_type)
            del self._tables[entity_type][record_id]

    @contextmanager
    def transaction(self):
        with self._lock:
            saved: dict[EntityType, dict[str, Record]] = {}
            self._snapshots.append(saved)
            try:
                yield self
            except Exception:
                self._tables.update(saved)
                logger.debug(
                    "In-memory transaction rolled back (%d table(s) restored)", len(saved)
                )
                raise
            finally:
                self._snapshots.pop()

    def clear(self) -> None:
        with self._lock:
            for table in self._tables.values():
                table.clear()

    def count(self, entity_type: EntityType) -> int:
        with self._lock:
            return len(self._tables[entity_type])

    def _save_table(self, entity_type: EntityType) -> None:
        for saved in self._snapshots:
            if entity_type not in saved:
                saved[entity_type] = copy.deepcopy(self._tables[entity_type])

    def _check_unique(
        self, entity_type: EntityType, record: Record, exclude_id: Optional[str]
    ) -> None:
        key = id_field(entity_type)
        for fields in UNIQUE_KEYS.get(entity_type, []):
            values = tuple(record.get(f) for f in fields)
            if any(v is None for v in values):
                continue
            for other in self._tables[entity_type].values():
                if other[key] == exclude_id:
                    continue
                if tuple(other.get(f) for f in fields) == values:
                    raise UniqueViolationError(entity_type, fields, values)
