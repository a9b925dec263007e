from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.refresher import build_default_refresher


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    refresher = build_default_refresher()
    refresher.start()
    try:
        yield
    finally:
        refresher.shutdown()
        build_default_refresher.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Charging Station Finder",
        description="Live availability of EV charging stations with filters and favorites.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


app = create_app()
