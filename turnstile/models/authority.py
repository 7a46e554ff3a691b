"""ORM model for named authorities (roles/permissions) granted to users."""

import enum

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from turnstile.core.security import AUTHORITY_NAME_MAX_LEN
from turnstile.models.base import Base


class Role(str, enum.Enum):
    """Built-in authority names."""

    ADMIN = "ADMIN"
    USER = "USER"


class Authority(Base):
    """
    A named authority, shared by every user that holds it.

    users is the derived side of the many-to-many; User.authorities owns it.
    """

    __tablename__ = "authorities"

    name = Column(String(AUTHORITY_NAME_MAX_LEN), primary_key=True)

    users = relationship(
        "User",
        secondary="user_authorities",
        back_populates="authorities",
    )

    def __repr__(self) -> str:
        return f"Authority(name={self.name!r})"
