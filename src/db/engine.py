"""Database engine and session factories."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.settings import get_settings

_sync_engine = None


def get_sync_engine():
    """Get or create the database engine from settings."""
    global _sync_engine
    if _sync_engine is None:
        settings = get_settings()
        kwargs = {"echo": settings.database_echo, "pool_pre_ping": True}
        if settings.database_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
        _sync_engine = create_engine(settings.database_url, **kwargs)
    return _sync_engine


def get_sync_session_factory(engine=None):
    """Session factory bound to the configured engine."""
    return sessionmaker(bind=engine or get_sync_engine(), expire_on_commit=False)


def init_db(engine=None) -> None:
    """Create all tables that do not exist yet."""
    from src.db.base import Base
    import src.db.models  # noqa: F401  registers tables

    Base.metadata.create_all(engine or get_sync_engine())
