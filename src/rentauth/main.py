"""FastAPI application factory.

Run with ``uvicorn rentauth.main:create_app --factory``.
"""

from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rentauth import __version__
from rentauth.api.router import api_router
from rentauth.config import Settings, get_settings
from rentauth.core.auth import RequestIdMiddleware, SecurityAuditMiddleware
from rentauth.core.cache import CredentialStore, RedisStore
from rentauth.core.database import create_engine, create_session_factory
from rentauth.core.errors import register_exception_handlers
from rentauth.core.logging import RequestLoggingMiddleware, configure_logging
from rentauth.core.notify import DeliveryPolicy, EmailNotifier, WhatsAppNotifier
from rentauth.core.rate_limit import (
    FixedWindowRateLimiter,
    SlowDown,
    build_policies,
    build_slow_down_policy,
)


logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Handles startup and shutdown events.
    """
    settings: Settings = app.state.settings
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
    )

    yield

    # Shutdown
    logger.info("application_shutdown")

    await app.state.email_notifier.aclose()
    await app.state.whatsapp_notifier.aclose()
    logger.info("notifiers_closed")

    await app.state.store.aclose()
    logger.info("store_closed")

    await app.state.engine.dispose()
    logger.info("database_engine_disposed")


def create_app(
    settings: Settings | None = None,
    store: CredentialStore | None = None,
    email_notifier: EmailNotifier | None = None,
    whatsapp_notifier: WhatsAppNotifier | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Every runtime collaborator is attached to ``app.state``; pass your own
    to replace the Redis store, the notifiers or the clock.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Authentication, one-time passcodes and abuse mitigation",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        # Disable docs in production
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    delivery_policy = DeliveryPolicy.from_settings(settings)
    store = store or RedisStore.from_url(
        str(settings.redis_url), max_connections=settings.redis_max_connections
    )
    engine = create_engine(settings)

    app.state.settings = settings
    app.state.store = store
    app.state.email_notifier = email_notifier or EmailNotifier(
        settings.emailer_url, delivery_policy
    )
    app.state.whatsapp_notifier = whatsapp_notifier or WhatsAppNotifier(
        settings.whatsapp_url, delivery_policy
    )
    app.state.clock = clock or _utcnow
    app.state.rate_limiter = FixedWindowRateLimiter(store)
    app.state.rate_limit_policies = build_policies(settings)
    app.state.slow_down = SlowDown(store, build_slow_down_policy(settings))
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    cors_origins = settings.cors_origins
    if settings.is_development and not cors_origins:
        cors_origins = ["http://localhost:3000", "http://localhost:8080"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "Accept-Language",
            "X-Request-ID",
        ],
        expose_headers=["Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining"],
    )

    # Security audit sees the final status of auth routes
    app.add_middleware(SecurityAuditMiddleware)

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Add request ID middleware (outermost, runs first)
    app.add_middleware(RequestIdMiddleware)

    # Register exception handlers for RFC 7807 error responses
    register_exception_handlers(app)

    app.include_router(api_router)

    return app
