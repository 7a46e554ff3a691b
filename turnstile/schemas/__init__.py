"""Pydantic request/response schemas."""

from turnstile.schemas.auth import (
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    TokenResponse,
)
from turnstile.schemas.authorities import (
    AuthoritiesListResponse,
    AuthorityCreateRequest,
    AuthorityRenameRequest,
    AuthorityResponse,
)
from turnstile.schemas.health import HealthResponse
from turnstile.schemas.users import (
    UserDetails,
    UserResponse,
    UsersListResponse,
    UserUpdateRequest,
)

__all__ = [
    "AuthoritiesListResponse",
    "AuthorityCreateRequest",
    "AuthorityRenameRequest",
    "AuthorityResponse",
    "ChangePasswordRequest",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "TokenResponse",
    "UserDetails",
    "UserResponse",
    "UsersListResponse",
    "UserUpdateRequest",
]
