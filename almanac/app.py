"""
Almanac Web API - FastAPI entry point.

Usage:
    uvicorn almanac.app:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from almanac.api.dependencies import viewers
from almanac.api.routers import (
    events_router,
    reconciliation_router,
    settings_router,
    summaries_router,
    viewers_router,
)
from almanac.database import Database
from almanac.settings import Settings
from almanac.version import VERSION

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the database on startup; drop viewer caches on shutdown."""
    db = Database()
    await db.connect()
    logger.info(f"Database connected ({db.path})")

    settings = Settings(db)
    await settings.init_defaults()
    logger.info("Settings initialized")

    yield

    disposed = await viewers.dispose_all()
    logger.info(f"Disposed {disposed} viewer controllers")
    await db.close()


app = FastAPI(
    title="Almanac",
    description="Financial obligation lifecycle and calendar aggregation engine",
    version=VERSION,
    lifespan=lifespan,
)

# CORS for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(events_router, prefix="/api")
app.include_router(summaries_router, prefix="/api")
app.include_router(reconciliation_router, prefix="/api")
app.include_router(settings_router, prefix="/api")
app.include_router(viewers_router, prefix="/api")


@app.get("/api/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": VERSION}
