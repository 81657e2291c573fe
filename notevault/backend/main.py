"""
NoteVault application factory.

    uvicorn notevault.backend.main:app

The app is built lazily on first access to `app`, so importing this module
does not read configuration.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notevault.backend.api import health
from notevault.backend.api.v1 import router as api_v1_router
from notevault.backend.core.activity import ActivityDeduplicator
from notevault.backend.core.config import get_app_config
from notevault.backend.core.config_schema import ApplicationSchema
from notevault.backend.core.database import dispose_engine
from notevault.backend.core.exception_handlers import register_exception_handlers
from notevault.backend.core.logging import get_logger, setup_logging
from notevault.backend.core.middleware import RequestContextMiddleware

logger = get_logger(__name__)

_app: FastAPI | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    settings = get_app_config().application
    logger.info(
        "NoteVault starting",
        extra={"app_name": settings.name, "env": settings.environment},
    )
    yield
    await dispose_engine()
    logger.info("NoteVault stopped")


def create_activity_deduplicator() -> ActivityDeduplicator:
    """Activity deduplicator sized from notes.yaml."""
    activity = get_app_config().notes.activity
    return ActivityDeduplicator(
        window_seconds=activity.window_ms / 1000,
        max_entries=activity.max_entries,
    )


def _add_middleware(app: FastAPI, settings: ApplicationSchema) -> None:
    app.add_middleware(RequestContextMiddleware)
    if settings.cors.origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )


def create_app() -> FastAPI:
    """
    Build the FastAPI app.

    The activity deduplicator is created here rather than in the lifespan
    so that it exists even when the server does not run lifespan events
    (in-process test transports, for one).
    """
    settings = get_app_config().application

    app = FastAPI(
        title=settings.name,
        description=settings.description,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.activity_deduplicator = create_activity_deduplicator()

    _add_middleware(app, settings)
    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(api_v1_router, prefix=settings.api_prefix)
    return app


def get_app() -> FastAPI:
    """Return the process-wide app, building it on first call."""
    global _app
    if _app is None:
        _app = create_app()
    return _app


def __getattr__(name: str) -> FastAPI:
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
