"""API Configuration.

Settings for the FoodConnect REST API.
"""

from dataclasses import dataclass, field


@dataclass
class APIConfig:
    """Core API settings."""

    title: str = "FoodConnect API"
    version: str = "1.0.0"
    description: str = "Restaurant and influencer campaign marketplace"
    prefix: str = "/api/v1"
    docs_url: str = "/docs"
    cors_origins: list[str] = field(default_factory=lambda: [
        "http://localhost:3000",   # Web frontend
        "http://localhost:8000",   # API self-reference
    ])
    cors_methods: list[str] = field(default_factory=lambda: ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
    cors_headers: list[str] = field(default_factory=lambda: ["*"])
    max_page_size: int = 100

    @classmethod
    def from_settings(cls, settings) -> "APIConfig":
        return cls(cors_origins=list(settings.cors_origins))


DEFAULT_API_CONFIG = APIConfig()
