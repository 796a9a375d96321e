"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from user_api.api import api_router
from user_api.api.errors import register_exception_handlers
from user_api.core.config import Settings, get_settings
from user_api.db.session import StorageHandle, connect_storage
from user_api.middleware.request_logging import RequestLoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if settings.is_strict and settings.uses_default_secret:
        logger.warning("USER_API_SECRET_KEY is unset; the development placeholder secret is in use")

    owns_storage = app.state.storage is None
    if owns_storage:
        app.state.storage = await connect_storage(settings)
    logger.info("User storage mode: %s", app.state.storage.mode)
    try:
        yield
    finally:
        if owns_storage:
            app.state.storage.close()
            app.state.storage = None


def create_app(settings: Settings | None = None, storage: StorageHandle | None = None) -> FastAPI:
    """Build the application; ``storage`` skips the startup connection when given."""

    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.storage = storage

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def root() -> str:
        return "API root is working!"

    return app


app = create_app()
