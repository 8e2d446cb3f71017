"""
Database - SQLite storage for obligation records and settings.

Usage:
    db = Database()
    await db.connect()
    rows = await db.get_obligations('Receivable', 'U1')
    await db.set_setting('cache_ttl_seconds', 30)
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

import aiosqlite

from almanac.database.base import BaseDatabase
from almanac.database.schema import SCHEMA

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent.parent / "data" / "almanac.db"


class Database(BaseDatabase):
    """Obligation and settings storage, one instance per database file."""

    _instances: dict[str, "Database"] = {}  # path -> instance
    _default_path: str = None

    def __new__(cls, path: str = None):
        """
        Singleton pattern per path - one database instance per unique path.

        Args:
            path: Database file path. If None, uses ALMANAC_DB_PATH or the default path.
        """
        if path is None:
            if cls._default_path is None:
                cls._default_path = os.environ.get("ALMANAC_DB_PATH", str(DEFAULT_DB_PATH))
            path = cls._default_path

        path = str(path)
        if path not in cls._instances:
            instance = super().__new__(cls)
            instance._path = Path(path)
            instance._connection = None
            cls._instances[path] = instance

        return cls._instances[path]

    def __init__(self, path: str = None):
        # Path is already set in __new__, nothing to do here
        pass

    @property
    def path(self) -> Path:
        return self._path

    async def connect(self) -> "Database":
        """Connect to database and initialize schema."""
        if self._connection is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._path)
            self._connection.row_factory = aiosqlite.Row
            await self._connection.execute("PRAGMA journal_mode=WAL")
            await self._connection.execute("PRAGMA busy_timeout=30000")
            await self._init_schema()
            logger.debug(f"Connected to {self._path}")
        return self

    async def close(self):
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def remove_from_cache(self):
        """Remove this instance from the singleton cache. Use for temporary databases."""
        path_str = str(self._path)
        if path_str in self._instances:
            del self._instances[path_str]

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    @staticmethod
    def _decode(raw: str) -> Any:
        # Values written before JSON encoding are returned as plain strings
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return raw

    async def get_setting(self, key: str, default: Any = None) -> Any:
        """Stored value for key, or default when unset."""
        cursor = await self.conn.execute("SELECT value FROM settings WHERE key = ?", (key,))
        row = await cursor.fetchone()
        return default if row is None else self._decode(row["value"])

    async def set_setting(self, key: str, value: Any) -> None:
        await self.conn.execute(
            "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
            (key, json.dumps(value)),
        )
        await self.conn.commit()

    async def get_all_settings(self) -> dict:
        """Every stored setting, decoded. Defaults are applied by Settings."""
        cursor = await self.conn.execute("SELECT key, value FROM settings ORDER BY key")
        return {row["key"]: self._decode(row["value"]) for row in await cursor.fetchall()}

    async def _init_schema(self) -> None:
        """Create obligation and settings tables if missing."""
        await self.conn.executescript(SCHEMA)
        await self.conn.commit()
