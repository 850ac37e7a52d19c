"""Core app configuration and database."""

from chatapi.core.config import Settings, get_settings
from chatapi.core.database import atomic, get_db

__all__ = ["Settings", "atomic", "get_settings", "get_db"]
