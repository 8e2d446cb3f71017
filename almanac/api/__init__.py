"""Almanac API package.

Contains FastAPI routers for the web API.
"""

from almanac.api.dependencies import CommonDependencies

__all__ = ["CommonDependencies"]
