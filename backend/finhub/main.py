from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from finhub.config import Settings, get_settings
from finhub.db import Database
from finhub.errors import register_error_handlers
from finhub.jobs.keepalive import KeepAliveJob
from finhub.logging_config import configure_logging
from finhub.routers import companies, health, users

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(production=settings.is_production)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(settings.database_url)
        db.create_all()
        app.state.db = db
        logger.info("Database connected")

        keep_alive = None
        if settings.is_production and settings.api_url:
            keep_alive = KeepAliveJob(settings.api_url)
            keep_alive.start()
        app.state.keep_alive = keep_alive

        try:
            yield
        finally:
            if keep_alive and keep_alive.is_running:
                keep_alive.stop()
            db.dispose()
            logger.info("Database disconnected")

    app = FastAPI(
        title="FinHub API",
        description="Users and companies with cost centers, accounts receivable and accounts payable.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    origins = settings.allowed_origins
    allow_any = "*" in origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if allow_any else origins,
        # Credentials are not allowed with a literal "*", so any origin is echoed back instead.
        allow_origin_regex=".*" if allow_any else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept"],
    )

    register_error_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(users.router, prefix="/users", tags=["users"])
    app.include_router(companies.router, prefix="/companies", tags=["companies"])

    return app


app = create_app()
