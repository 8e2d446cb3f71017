"""FastAPI dependencies for API routers.

Provides common dependencies that can be injected into route handlers.
Each API viewer (identified by the ``X-Viewer-Id`` header) gets its own
controller, and with it its own cache.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from almanac.controller import EventLifecycleController
from almanac.database import Database
from almanac.settings import Settings
from almanac.store import EventStore

logger = logging.getLogger(__name__)

DEFAULT_VIEWER = "default"


class ViewerRegistry:
    """Controllers keyed by viewer id, created lazily."""

    def __init__(self):
        self._controllers: dict[str, EventLifecycleController] = {}

    async def get(self, viewer_id: str, db: Database, settings: Settings) -> EventLifecycleController:
        """Return the viewer's controller, building its store from current settings on first use."""
        controller = self._controllers.get(viewer_id)
        if controller is None:
            store = EventStore(db, currency=await settings.get("currency"), locale=await settings.get("locale"))
            controller = await EventLifecycleController.from_settings(store, settings)
            self._controllers[viewer_id] = controller
            logger.debug(f"Created controller for viewer {viewer_id}")
        return controller

    async def dispose(self, viewer_id: str) -> bool:
        controller = self._controllers.pop(viewer_id, None)
        if controller is None:
            return False
        await controller.dispose()
        logger.debug(f"Disposed controller for viewer {viewer_id}")
        return True

    async def dispose_all(self) -> int:
        count = len(self._controllers)
        for viewer_id in list(self._controllers):
            await self.dispose(viewer_id)
        return count

    def __contains__(self, viewer_id: str) -> bool:
        return viewer_id in self._controllers

    def __len__(self) -> int:
        return len(self._controllers)


viewers = ViewerRegistry()


@dataclass
class CommonDependencies:
    """Common dependencies used across API routes.

    Usage:
        @router.get("/endpoint")
        async def my_endpoint(deps: Annotated[CommonDependencies, Depends(get_common_deps)]):
            controller = deps.controller
            # ...
    """

    db: Database
    settings: Settings
    store: EventStore
    controller: EventLifecycleController


async def get_common_deps(x_viewer_id: Optional[str] = Header(default=None)) -> CommonDependencies:
    """Factory for common dependencies.

    Returns the shared Database plus the calling viewer's controller and the
    store that controller reads through.
    """
    db = Database()
    settings = Settings(db)
    controller = await viewers.get(x_viewer_id or DEFAULT_VIEWER, db, settings)
    return CommonDependencies(db=db, settings=settings, store=controller.store, controller=controller)
