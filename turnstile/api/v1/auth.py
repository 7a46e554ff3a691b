"""JWT login, password change and auth dependencies (get_current_user, require_admin)."""

from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from turnstile.api.v1.errors import http_error_from_identity_error
from turnstile.core.config import get_settings
from turnstile.core.database import get_db
from turnstile.core.exceptions import IdentityError, UserNotFoundError
from turnstile.core.security import create_access_token, decode_access_token
from turnstile.schemas.auth import (
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    TokenResponse,
)
from turnstile.services.authentication import AuthenticatedSession, SecurityContext
from turnstile.services.user_service import UserService

router = APIRouter()
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_user_service(db: Annotated[Session, Depends(get_db)]) -> UserService:
    """Dependency: UserService bound to the request's DB session."""
    return UserService(db)


@router.post("", response_model=TokenResponse)
def login(
    body: LoginRequest,
    users: Annotated[UserService, Depends(get_user_service)],
) -> TokenResponse:
    """
    Authenticate with username and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    try:
        session = users.authentication_manager().authenticate(body.username, body.password)
    except IdentityError as e:
        raise http_error_from_identity_error(e) from e
    user = users.load_user_by_username(session.username)
    token = create_access_token(
        sub=session.username,
        authorities=session.authorities,
        version=user.token_version,
    )
    return TokenResponse(access_token=token, token_type="bearer")


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> CurrentUser:
    """
    Dependency: require valid Bearer JWT and return the current user. Raises 401 if missing or invalid.

    Tokens issued before the user's last password change are rejected.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise _unauthorized("Invalid or expired token")
    sub = payload.get("sub")
    if not sub or not isinstance(sub, str):
        raise _unauthorized("Invalid token payload")
    try:
        user = users.load_user_by_username(sub)
    except UserNotFoundError:
        raise _unauthorized("User not found")
    if payload.get("ver") != user.token_version:
        raise _unauthorized("Session is no longer valid; log in again")
    return CurrentUser(username=user.username, authorities=user.authority_names)


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require authenticated user holding ADMIN_AUTHORITY. Raises 403 otherwise."""
    if get_settings().ADMIN_AUTHORITY not in current_user.authorities:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


@router.get("/me", response_model=CurrentUser)
def read_current_user(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Return the authenticated caller."""
    return current_user


@router.post("/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> None:
    """
    Change the caller's password. The old password is checked again; on success
    every token issued to the caller so far (including this one) stops working.
    """
    context = SecurityContext(
        authentication=AuthenticatedSession(
            username=current_user.username,
            authorities=frozenset(current_user.authorities),
        )
    )
    try:
        users.change_password(context, body.old_password, body.new_password)
    except IdentityError as e:
        raise http_error_from_identity_error(e) from e
