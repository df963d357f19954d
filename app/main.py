from __future__ import annotations
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api import query_error_handler, router
from app.web import router as web_router
from logging_config import configure_logging
from services.errors import QueryError
from services.loader import build_default_loader
from services.query_engine import build_default_engine
from settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    loader = build_default_loader()
    if get_settings().load_on_startup:
        loader.start()
    try:
        yield
    finally:
        loader.shutdown()
        build_default_loader.cache_clear()
        build_default_engine.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="SWaT Playback",
        description="Read-only playback API over the SWaT sensor dataset and its attack log.",
        version="0.1.0",
        lifespan=lifespan,
    )
    static_dir = Path(__file__).resolve().parent / "static"
    app.mount("/static", StaticFiles(directory=static_dir), name="static")
    app.add_exception_handler(QueryError, query_error_handler)
    app.include_router(router)
    app.include_router(web_router)
    return app

app = create_app()
