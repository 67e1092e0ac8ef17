"""Tests for environment-driven settings."""

from src.marketplace import MarketplaceConfig
from src.settings import Settings, get_settings


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.use_database is False
        assert settings.default_commission_rate == 15.0
        assert settings.currency == "MYR"
        assert settings.database_url.startswith("sqlite")

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("FOODCONNECT_DEFAULT_COMMISSION_RATE", "12.5")
        monkeypatch.setenv("FOODCONNECT_AVAILABLE_PAGE_SIZE", "20")
        settings = Settings()
        assert settings.default_commission_rate == 12.5
        assert settings.available_page_size == 20

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_marketplace_config_from_settings(self):
        config = MarketplaceConfig.from_settings(Settings(default_commission_rate=10, currency="SGD"))
        assert config.default_commission_rate == 10.0
        assert config.currency == "SGD"
        assert config.max_influencers_limit == 500
