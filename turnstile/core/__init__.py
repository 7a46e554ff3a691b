"""Core configuration, database access, security primitives and errors."""

from turnstile.core.config import get_settings, settings
from turnstile.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
