"""
Configuration package for blockdown

Provides AppSettings, read from BLOCKDOWN_* environment variables or a .env
file through pydantic-settings, and the shared appsettings instance.
"""

from .settings import appsettings, AppSettings

__all__ = ["appsettings", "AppSettings"]
