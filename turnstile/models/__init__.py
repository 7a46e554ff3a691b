"""SQLAlchemy ORM models."""

from turnstile.models.authority import Authority, Role
from turnstile.models.base import Base
from turnstile.models.user import User, user_authorities

__all__ = ["Authority", "Base", "Role", "User", "user_authorities"]
