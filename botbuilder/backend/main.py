"""
FastAPI Application Entry Point.

One process serves both surfaces:
    /api/v1/...                 bot management API for the dashboard
    {webhook_path}/{token}      Telegram webhook, when channel_telegram_enabled

Run with `python cli.py --service server` or
`uvicorn botbuilder.backend.main:app`.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from botbuilder.backend.api import health
from botbuilder.backend.api.v1 import router as api_v1_router
from botbuilder.backend.core.config import AppConfig, get_app_config
from botbuilder.backend.core.exception_handlers import register_exception_handlers
from botbuilder.backend.core.logging import get_logger, setup_logging
from botbuilder.backend.core.middleware import RequestContextMiddleware

logger = get_logger(__name__)

_app: FastAPI | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_config = get_app_config()
    setup_logging(level=app_config.logging.level, format_type=app_config.logging.format)
    logger.info(
        "Application starting",
        extra={
            "app_name": app_config.application.name,
            "env": app_config.application.environment,
            "public_base_url": app_config.application.public_base_url,
        },
    )

    yield

    from botbuilder.backend.core.database import dispose_engine

    await dispose_engine()
    logger.info("Application shutting down")


def _add_middleware(app: FastAPI, app_config: AppConfig) -> None:
    # Added last runs first: CORS answers preflights before request tracking
    app.add_middleware(RequestContextMiddleware)
    origins = app_config.application.cors.origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )


def _include_routers(app: FastAPI, app_config: AppConfig) -> None:
    app.include_router(health.router, tags=["health"])
    app.include_router(api_v1_router, prefix="/api/v1")

    if not app_config.features.channel_telegram_enabled:
        logger.info("Telegram channel disabled")
        return

    from botbuilder.telegram.webhook import get_webhook_router

    app.include_router(get_webhook_router())
    logger.info(
        "Telegram webhook mounted",
        extra={"path": app_config.application.telegram.webhook_path},
    )


def create_app() -> FastAPI:
    """Build the application from the YAML configuration."""
    app_config = get_app_config()
    app_settings = app_config.application

    app = FastAPI(
        title=app_settings.name,
        description=app_settings.description,
        version=app_settings.version,
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
        lifespan=lifespan,
    )
    _add_middleware(app, app_config)
    register_exception_handlers(app)
    _include_routers(app, app_config)
    return app


def get_app() -> FastAPI:
    """Create the application on first call and cache it."""
    global _app
    if _app is None:
        _app = create_app()
    return _app


def __getattr__(name: str) -> FastAPI:
    # `main:app` is resolved lazily so importing this module needs no config
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
