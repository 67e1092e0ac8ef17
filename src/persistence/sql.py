"""SQLAlchemy-backed store (SQLite / PostgreSQL)."""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.db.models import (
    ApplicationRecord,
    CampaignRecord,
    CommissionRecord,
    FollowerUpdateRequestRecord,
    InfluencerRecord,
    MessageRecord,
    RestaurantRecord,
)
from src.persistence.base import (
    UNIQUE_KEYS,
    EntityType,
    Predicate,
    Record,
    RecordNotFoundError,
    StoreError,
    UniqueViolationError,
    id_field,
    matches,
    sort_records,
)

logger = logging.getLogger(__name__)

MODEL_CLASSES = {
    EntityType.RESTAURANT: RestaurantRecord,
    EntityType.INFLUENCER: InfluencerRecord,
    EntityType.CAMPAIGN: CampaignRecord,
    EntityType.APPLICATION: ApplicationRecord,
    EntityType.COMMISSION: CommissionRecord,
    EntityType.FOLLOWER_UPDATE_REQUEST: FollowerUpdateRequestRecord,
    EntityType.MESSAGE: MessageRecord,
}


def _aware(value: Any) -> Any:
    # SQLite drops tzinfo on the way back
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _row_to_record(row) -> Record:
    return {
        column.name: _aware(getattr(row, column.name))
        for column in row.__table__.columns
    }


class SQLAlchemyStore:
    """Store backed by the ORM models in src.db.models.

    Writes are serialized through a process-wide lock; transaction()
    binds one session to the current thread so every call inside the
    block commits or rolls back together. Across processes, lock()
    takes a row lock (SELECT ... FOR UPDATE) held until that session
    commits. SQLite has no row locks and relies on its database-wide
    write lock instead.
    """

    def __init__(self, engine, session_factory=None):
        from sqlalchemy.orm import sessionmaker

        self.engine = engine
        self.session_factory = session_factory or sessionmaker(
            bind=engine, expire_on_commit=False
        )
        self._lock = threading.RLock()
        self._local = threading.local()

    # --- session handling ---

    @contextmanager
    def _session(self):
        active = getattr(self._local, "session", None)
        if active is not None:
            try:
                yield active
            except IntegrityError as exc:
                raise StoreError(str(exc.orig)) from exc
            except SQLAlchemyError as exc:
                raise StoreError(str(exc)) from exc
            return
        with self._lock:
            session = self.session_factory()
            try:
                yield session
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise StoreError(str(exc.orig)) from exc
            except SQLAlchemyError as exc:
                session.rollback()
                raise StoreError(str(exc)) from exc
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    @contextmanager
    def transaction(self):
        if getattr(self._local, "session", None) is not None:
            yield self
            return
        with self._lock:
            session = self.session_factory()
            self._local.session = session
            try:
                yield self
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.warning("Database transaction failed: %s", exc)
                raise StoreError(str(exc)) from exc
            except Exception:
                session.rollback()
                logger.debug("Database transaction rolled back")
                raise
            finally:
                self._local.session = None
                session.close()

    # --- operations ---

    def get(self, entity_type: EntityType, record_id: str) -> Optional[Record]:
        model = MODEL_CLASSES[entity_type]
        with self._session() as session:
            row = session.get(model, record_id)
            return _row_to_record(row) if row is not None else None

    def lock(self, entity_type: EntityType, record_id: str) -> Optional[Record]:
        model = MODEL_CLASSES[entity_type]
        stmt = (
            select(model)
            .where(getattr(model, id_field(entity_type)) == record_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        with self._session() as session:
            row = session.scalars(stmt).first()
            return _row_to_record(row) if row is not None else None

    def find(
        self,
        entity_type: EntityType,
        predicate: Optional[Predicate] = None,
        **filters: Any,
    ) -> list[Record]:
        model = MODEL_CLASSES[entity_type]
        stmt = select(model)
        for key, expected in filters.items():
            column = getattr(model, key)
            if isinstance(expected, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(expected)))
            else:
                stmt = stmt.where(column == expected)
        with self._session() as session:
            rows = [_row_to_record(r) for r in session.scalars(stmt)]
        return sort_records([r for r in rows if matches(r, predicate, {})])

    def insert(self, entity_type: EntityType, record: Record) -> Record:
        model = MODEL_CLASSES[entity_type]
        with self._session() as session:
            self._check_unique(session, entity_type, record, exclude_id=None)
            row = model(**record)
            session.add(row)
            try:
                session.flush()
            except IntegrityError as exc:
                raise self._translate(entity_type, exc) from exc
            return _row_to_record(row)

    def update(self, entity_type: EntityType, record_id: str, patch: Record) -> Record:
        model = MODEL_CLASSES[entity_type]
        with self._session() as session:
            row = session.get(model, record_id)
            if row is None:
                raise RecordNotFoundError(entity_type, record_id)
            merged = {**_row_to_record(row), **patch}
            self._check_unique(session, entity_type, merged, exclude_id=record_id)
            for key, value in patch.items():
                if key != id_field(entity_type):
                    setattr(row, key, value)
            try:
                session.flush()
            except IntegrityError as exc:
                raise self._translate(entity_type, exc) from exc
            return _row_to_record(row)

    def delete(self, entity_type: EntityType, record_id: str) -> None:
        model = MODEL_CLASSES[entity_type]
        with self._session() as session:
            row = session.get(model, record_id)
            if row is None:
                raise RecordNotFoundError(entity_type, record_id)
            session.delete(row)
            session.flush()

    def _check_unique(self, session, entity_type: EntityType, record: Record, exclude_id):
        model = MODEL_CLASSES[entity_type]
        key_column = getattr(model, id_field(entity_type))
        for fields in UNIQUE_KEYS.get(entity_type, []):
            values = tuple(record.get(f) for f in fields)
            if any(v is None for v in values):
                continue
            clause = and_(*(getattr(model, f) == v for f, v in zip(fields, values)))
            stmt = select(key_column).where(clause)
            if exclude_id is not None:
                stmt = stmt.where(key_column != exclude_id)
            if session.scalars(stmt.limit(1)).first() is not None:
                raise UniqueViolationError(entity_type, fields, values)

    @staticmethod
    def _translate(entity_type: EntityType, exc: IntegrityError) -> StoreError:
        message = str(exc.orig)
        if "unique" in message.lower() or "duplicate" in message.lower():
            keys = UNIQUE_KEYS.get(entity_type) or [(id_field(entity_type),)]
            return UniqueViolationError(entity_type, keys[0])
        return StoreError(message)
