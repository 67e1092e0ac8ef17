"""FastAPI Application Factory.

Creates and configures the FoodConnect API application with its
middleware stack: security headers, request tracing, error handling,
and CORS.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.api.config import APIConfig
from src.api.models import HealthResponse
from src.api.routes import applications, campaigns, commissions, influencers, messages, restaurants
from src.api_errors import ErrorHandlingMiddleware, register_exception_handlers
from src.logging_config import LoggingConfig, RequestTracingMiddleware, configure_logging
from src.marketplace import MarketplaceConfig, MarketplaceServices
from src.notifications import Notifier
from src.persistence import InMemoryStore, SQLAlchemyStore, Store
from src.settings import Settings, get_settings

logger = logging.getLogger(__name__)


# ── Security Headers Middleware ───────────────────────────────────────


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds standard security headers to all HTTP responses."""

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if os.environ.get("FOODCONNECT_ENABLE_HSTS", "").lower() == "true":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response


# ── Store selection ──────────────────────────────────────────────────


def build_store(settings: Settings) -> Store:
    """SQLAlchemy store when the database is enabled, in-memory otherwise."""
    if not settings.use_database:
        logger.info("Using in-memory store")
        return InMemoryStore()

    from src.db import get_sync_engine, get_sync_session_factory, init_db

    engine = get_sync_engine()
    init_db(engine)
    logger.info("Using database store")
    return SQLAlchemyStore(engine, get_sync_session_factory(engine))


# ── App Factory ──────────────────────────────────────────────────────


def create_app(
    config: Optional[APIConfig] = None,
    store: Optional[Store] = None,
    notifier: Optional[Notifier] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Middleware stack (outermost → innermost):
        SecurityHeaders → RequestTracing → ErrorHandling → CORS → App

    Args:
        config: API configuration. Built from settings if not provided.
        store: Record store. Chosen from settings if not provided.
        notifier: Notification sender. Logs notifications if not provided.
        settings: Platform settings. Uses get_settings() if not provided.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()
    config = config or APIConfig.from_settings(settings)
    logging_config = LoggingConfig.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(logging_config)
        logger.info("FoodConnect API starting up")
        yield
        logger.info("FoodConnect API shutting down")

    app = FastAPI(
        title=config.title,
        version=config.version,
        description=config.description,
        docs_url=config.docs_url,
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.services = MarketplaceServices(
        store=store if store is not None else build_store(settings),
        notifier=notifier,
        config=MarketplaceConfig.from_settings(settings),
    )
    register_exception_handlers(app)

    # ── Middleware stack ──────────────────────────────────────────
    # add_middleware prepends, so order here is innermost-first.

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=config.cors_methods,
        allow_headers=config.cors_headers,
    )
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestTracingMiddleware, config=logging_config)
    app.add_middleware(SecurityHeadersMiddleware)

    # ── Health check ─────────────────────────────────────────────

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        components = {"store": type(app.state.services.store).__name__}
        return HealthResponse(status="ok", version=config.version, components=components)

    # ── Routers ──────────────────────────────────────────────────

    app.include_router(restaurants.router, prefix=config.prefix)
    app.include_router(influencers.router, prefix=config.prefix)
    app.include_router(campaigns.router, prefix=config.prefix)
    app.include_router(applications.router, prefix=config.prefix)
    app.include_router(commissions.router, prefix=config.prefix)
    app.include_router(messages.router, prefix=config.prefix)

    logger.info(f"FoodConnect API v{config.version} initialized")
    return app
