"""API routers for Almanac.

Each router handles a specific domain of the API.
"""

from almanac.api.routers.events import router as events_router
from almanac.api.routers.reconciliation import router as reconciliation_router
from almanac.api.routers.settings import router as settings_router
from almanac.api.routers.summaries import router as summaries_router
from almanac.api.routers.viewers import router as viewers_router

__all__ = [
    "events_router",
    "reconciliation_router",
    "settings_router",
    "summaries_router",
    "viewers_router",
]
