"""
Database Package

Provides persistence of obligation records and settings.
"""

from almanac.database.base import BaseDatabase
from almanac.database.main import Database

__all__ = ["Database", "BaseDatabase"]
