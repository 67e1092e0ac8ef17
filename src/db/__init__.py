"""Database package for the FoodConnect platform."""

from src.db.base import Base
from src.db.engine import get_sync_engine, get_sync_session_factory, init_db
from src.db.models import (
    ApplicationRecord,
    CampaignRecord,
    CommissionRecord,
    FollowerUpdateRequestRecord,
    InfluencerRecord,
    MessageRecord,
    RestaurantRecord,
)

__all__ = [
    "Base",
    "get_sync_engine",
    "get_sync_session_factory",
    "init_db",
    "ApplicationRecord",
    "CampaignRecord",
    "CommissionRecord",
    "FollowerUpdateRequestRecord",
    "InfluencerRecord",
    "MessageRecord",
    "RestaurantRecord",
]
