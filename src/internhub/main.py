"""FastAPI application entry point for the InternHub contract/dispute service.

Lifecycle:
    1. Startup: Initialize logging, open the database, create tables (dev mode),
       start the notification dispatcher.
    2. Running: Serve the student and company REST APIs.
    3. Shutdown: Drain the notification queue, then close the database.

Run with:
    uv run uvicorn internhub.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from internhub.config import Settings, get_settings
from internhub.infrastructure.database.engine import Database
from internhub.logging_config import get_logger, setup_logging
from internhub.services.notification_service import NotificationDispatcher

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    settings: Settings = app.state.settings

    # 1. Setup structured logging
    setup_logging(
        log_level=settings.app_log_level,
        json_logs=not settings.is_development,
    )
    logger = get_logger(__name__)
    logger.info(
        "app.starting",
        env=settings.app_env,
        debug=settings.app_debug,
    )

    # 2. Initialize database
    database = Database(settings)
    database.connect()
    if settings.is_development:
        await database.create_all()
    app.state.database = database

    # 3. Start the notification dispatcher
    notifier = NotificationDispatcher(
        database.session_factory,
        max_queue_size=settings.notification_queue_size,
        drain_timeout=settings.notification_drain_timeout_seconds,
    )
    await notifier.start()
    app.state.notifier = notifier

    logger.info("app.started", host=settings.app_host, port=settings.app_port)

    yield

    # Shutdown
    logger.info("app.shutting_down")
    await notifier.stop()
    await database.dispose()
    logger.info("app.stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory - creates and configures the FastAPI app."""
    settings = settings or get_settings()

    app = FastAPI(
        title="InternHub Contracts",
        description=(
            "Contract and dispute lifecycle service for the InternHub "
            "internship marketplace."
        ),
        version=APP_VERSION,
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )
    app.state.settings = settings

    # --- Middleware ---
    from internhub.api.middleware import setup_middleware

    setup_middleware(app, settings)

    # --- REST API Routes ---
    from internhub.api.routes.company_contracts import router as company_contracts_router
    from internhub.api.routes.company_disputes import router as company_disputes_router
    from internhub.api.routes.health import router as health_router
    from internhub.api.routes.student_contracts import router as student_contracts_router
    from internhub.api.routes.student_disputes import router as student_disputes_router

    app.include_router(health_router)
    app.include_router(student_disputes_router)
    app.include_router(student_contracts_router)
    app.include_router(company_disputes_router)
    app.include_router(company_contracts_router)

    return app


# The app instance used by Uvicorn
app = create_app()
