"""Centralized settings for the FoodConnect platform.

Uses pydantic-settings to load from environment variables (prefixed
FOODCONNECT_) with defaults suitable for local development.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """FoodConnect platform settings loaded from environment variables."""

    # --- Database ---
    database_url: str = "sqlite:///foodconnect.db"
    database_echo: bool = False

    # --- Feature flags ---
    use_database: bool = False  # In-memory store when False

    # --- Marketplace ---
    default_commission_rate: float = 15.0  # percent of budget_per_influencer
    currency: str = "MYR"
    available_page_size: int = 12

    # --- Logging ---
    log_level: str = "INFO"
    log_format: str = "json"
    service_name: str = "foodconnect"

    # --- API ---
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {
        "env_prefix": "FOODCONNECT_",
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
