"""
Settings - Runtime configuration stored in the database.

Usage:
    settings = Settings(db)
    ttl = await settings.get('cache_ttl_seconds')
    await settings.set('auto_reconcile', False)
    all_settings = await settings.all()
"""

from typing import Any, Optional

from almanac.database import Database

# Default settings - applied on first run, then editable via the API
DEFAULTS = {
    # Seconds a calendar query result stays in a viewer's cache
    "cache_ttl_seconds": 30,
    # Run the status reconciler whenever fresh events are loaded
    "auto_reconcile": True,
    # Keep the last good event list when a fetch fails (False) or clear it (True)
    "clear_on_error": False,
    # Display formatting
    "currency": "BRL",
    "locale": "pt_BR",
}


class Settings:
    """Application settings backed by the ``settings`` table."""

    def __init__(self, db: Optional[Database] = None):
        self._db = db or Database()

    async def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value."""
        value = await self._db.get_setting(key)
        if value is None:
            return default if default is not None else DEFAULTS.get(key)
        return value

    async def set(self, key: str, value: Any) -> None:
        """Set a setting value."""
        if key not in DEFAULTS:
            raise KeyError(f"Unknown setting: {key}")
        await self._db.set_setting(key, value)

    async def all(self) -> dict:
        """Get all settings with defaults applied."""
        stored = await self._db.get_all_settings()
        result = DEFAULTS.copy()
        result.update({k: v for k, v in stored.items() if k in DEFAULTS})
        return result

    async def init_defaults(self) -> None:
        """Initialize default settings if not already set."""
        for key, value in DEFAULTS.items():
            existing = await self._db.get_setting(key)
            if existing is None:
                await self._db.set_setting(key, value)
