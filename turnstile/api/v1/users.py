"""Admin endpoints for user management."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from turnstile.api.v1.auth import get_user_service, require_admin
from turnstile.api.v1.errors import http_error_from_identity_error
from turnstile.core.exceptions import IdentityError
from turnstile.core.security import USERNAME_MAX_LEN
from turnstile.schemas.auth import CurrentUser
from turnstile.schemas.users import (
    UserDetails,
    UserResponse,
    UsersListResponse,
    UserUpdateRequest,
)
from turnstile.services.user_service import UserService

router = APIRouter()

UsernamePath = Annotated[str, Path(min_length=1, max_length=USERNAME_MAX_LEN)]


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> UsersListResponse:
    """List all users (admin only)."""
    return UsersListResponse(users=[UserResponse.from_model(u) for u in users.list_users()])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserDetails,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """Create a user; unknown authority names are created on the fly."""
    try:
        user = users.create_user(body)
    except IdentityError as e:
        raise http_error_from_identity_error(e) from e
    return UserResponse.from_model(user)


@router.get("/{username}", response_model=UserResponse)
def get_user(
    username: UsernamePath,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    try:
        user = users.load_user_by_username(username)
    except IdentityError as e:
        raise http_error_from_identity_error(e) from e
    return UserResponse.from_model(user)


@router.put("/{username}", response_model=UserResponse)
def update_user(
    username: UsernamePath,
    body: UserUpdateRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """Replace flags and authorities; the password changes only when given."""
    try:
        user = users.update_user(UserDetails(username=username, **body.model_dump()))
    except IdentityError as e:
        raise http_error_from_identity_error(e) from e
    return UserResponse.from_model(user)


@router.delete("/{username}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    username: UsernamePath,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> None:
    try:
        users.delete_user(username)
    except IdentityError as e:
        raise http_error_from_identity_error(e) from e
