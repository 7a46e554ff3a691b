"""ORM model for user accounts and their authority assignments."""

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, String, Table, text, true
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from turnstile.core.security import (
    AUTHORITY_NAME_MAX_LEN,
    PASSWORD_HASH_MAX_LEN,
    USERNAME_MAX_LEN,
)
from turnstile.models.base import Base

# Many-to-many link between users and authorities. Rows go away with either side.
user_authorities = Table(
    "user_authorities",
    Base.metadata,
    Column(
        "username",
        String(USERNAME_MAX_LEN),
        ForeignKey("users.username", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "authority",
        String(AUTHORITY_NAME_MAX_LEN),
        ForeignKey("authorities.name", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
)


class User(Base):
    """
    Account record: username, bcrypt password hash, state flags and authorities.

    The four flags gate authentication (see AuthenticationManager). They all
    default to True. token_version is bumped on password change so that access
    tokens issued before the change stop being accepted. attributes holds extra
    per-deployment fields as a JSON object; the services never interpret it.
    """

    __tablename__ = "users"

    username = Column(String(USERNAME_MAX_LEN), primary_key=True)
    password = Column(String(PASSWORD_HASH_MAX_LEN), nullable=False)
    enabled = Column(Boolean, nullable=False, default=True, server_default=true())
    account_non_expired = Column(Boolean, nullable=False, default=True, server_default=true())
    account_non_locked = Column(Boolean, nullable=False, default=True, server_default=true())
    credentials_non_expired = Column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    token_version = Column(Integer, nullable=False, default=0, server_default="0")
    # Deployment-specific profile fields (email, display name, ...) keyed by name.
    attributes = Column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
        server_default=text("'{}'"),
    )

    authorities = relationship(
        "Authority",
        secondary=user_authorities,
        back_populates="users",
        lazy="selectin",
        order_by="Authority.name",
    )

    @property
    def authority_names(self) -> list[str]:
        return [a.name for a in self.authorities]

    def __repr__(self) -> str:
        return (
            f"User(username={self.username!r}, enabled={self.enabled}, "
            f"authorities={self.authority_names!r})"
        )
