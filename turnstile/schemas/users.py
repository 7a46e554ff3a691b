"""Request/response schemas for user management."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, JsonValue, StringConstraints

from turnstile.core.security import (
    AUTHORITY_NAME_MAX_LEN,
    AUTHORITY_NAME_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from turnstile.models import User

AuthorityName = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=AUTHORITY_NAME_MIN_LEN,
        max_length=AUTHORITY_NAME_MAX_LEN,
    ),
]


class UserDetails(BaseModel):
    """
    Desired state of a user, as passed to UserService.create_user / update_user.

    password is plain text and optional here: create_user rejects a missing
    password, update_user keeps the stored hash when it is omitted. attributes
    replaces the stored extra fields wholesale on update.
    """

    username: str = Field(
        ..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN, description="Username"
    )
    password: str | None = Field(default=None, max_length=128, description="Plain password")
    enabled: bool = True
    account_non_expired: bool = True
    account_non_locked: bool = True
    credentials_non_expired: bool = True
    authorities: list[AuthorityName] = Field(default_factory=list)
    attributes: dict[str, JsonValue] = Field(default_factory=dict)

    @classmethod
    def from_model(cls, user: User) -> "UserDetails":
        """Current state of a stored user, without the password."""
        return cls(
            username=user.username,
            enabled=user.enabled,
            account_non_expired=user.account_non_expired,
            account_non_locked=user.account_non_locked,
            credentials_non_expired=user.credentials_non_expired,
            authorities=user.authority_names,
            attributes=dict(user.attributes or {}),
        )


class UserUpdateRequest(BaseModel):
    """Body for PUT /users/{username}; the username comes from the path."""

    password: str | None = Field(default=None, max_length=128)
    enabled: bool = True
    account_non_expired: bool = True
    account_non_locked: bool = True
    credentials_non_expired: bool = True
    authorities: list[AuthorityName] = Field(default_factory=list)
    attributes: dict[str, JsonValue] = Field(default_factory=dict)


class UserResponse(BaseModel):
    """User as returned by the admin API (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    username: str
    enabled: bool
    account_non_expired: bool
    account_non_locked: bool
    credentials_non_expired: bool
    authorities: list[str]
    attributes: dict[str, JsonValue]

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(
            username=user.username,
            enabled=user.enabled,
            account_non_expired=user.account_non_expired,
            account_non_locked=user.account_non_locked,
            credentials_non_expired=user.credentials_non_expired,
            authorities=user.authority_names,
            attributes=dict(user.attributes or {}),
        )


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[UserResponse]
