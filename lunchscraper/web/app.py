"""
Lunch Scraper — Web Application

FastAPI app serving the stored lunch data as JSON and as simple HTML pages.

Run via:
    lunchscraper serve --listen "[::]:20666" json
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lunchscraper import __version__
from lunchscraper.config import settings
from lunchscraper.store import create_engine_and_sessions
from lunchscraper.web.api import router as api_router
from lunchscraper.web.html import router as html_router

logger = structlog.get_logger(__name__)


def create_app(
    database_url: Optional[str] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    json_routes: bool = True,
    html_routes: bool = True,
) -> FastAPI:
    """
    Build the app. With `session_factory` given the caller owns the engine;
    otherwise one is created from `database_url` (or DATABASE_URL) on startup
    and disposed on shutdown. `json_routes` / `html_routes` pick which routers
    are mounted; /health is always served.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine = None
        if getattr(app.state, "session_factory", None) is None:
            engine, app.state.session_factory = create_engine_and_sessions(
                database_url or settings.DATABASE_URL
            )
        logger.info("web_app_started", version=__version__)
        yield
        if engine is not None:
            await engine.dispose()
            app.state.session_factory = None
        logger.info("web_app_stopped")

    app = FastAPI(
        title="Lunch Scraper API",
        description="Today's lunch menus, by country, city and site",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.session_factory = session_factory

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    if json_routes:
        app.include_router(api_router)
    if html_routes:
        app.include_router(html_router)
    return app


app = create_app()
