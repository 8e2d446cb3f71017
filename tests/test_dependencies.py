"""Tests for API dependencies and the per-viewer controller registry."""

import pytest

from almanac.api import dependencies
from almanac.api.dependencies import ViewerRegistry, get_common_deps, viewers
from almanac.settings import Settings


class TestViewerRegistry:
    @pytest.mark.asyncio
    async def test_controller_is_reused_per_viewer(self, db):
        registry = ViewerRegistry()
        settings = Settings(db)

        first = await registry.get("a", db, settings)
        again = await registry.get("a", db, settings)
        other = await registry.get("b", db, settings)

        assert first is again
        assert first is not other
        assert first.cache is not other.cache
        assert len(registry) == 2

    @pytest.mark.asyncio
    async def test_dispose(self, db):
        registry = ViewerRegistry()
        await registry.get("a", db, Settings(db))

        assert await registry.dispose("a") is True
        assert "a" not in registry
        assert await registry.dispose("a") is False


class TestCommonDependencies:
    @pytest.mark.asyncio
    async def test_store_is_the_controllers_store(self, db, monkeypatch):
        """A settings change between requests must not split the viewer's store."""
        monkeypatch.setattr(dependencies, "Database", lambda: db)
        try:
            first = await get_common_deps(x_viewer_id="till-1")
            await Settings(db).set("locale", "en_US")
            second = await get_common_deps(x_viewer_id="till-1")

            assert second.controller is first.controller
            assert first.store is first.controller.store
            assert second.store is first.store
        finally:
            await viewers.dispose("till-1")
