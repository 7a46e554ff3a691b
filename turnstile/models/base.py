"""Declarative Base shared by the identity models (users, authorities)."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base; Base.metadata is the target for Alembic autogenerate."""
