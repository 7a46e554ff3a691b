"""Admin endpoints for authority management."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from turnstile.api.v1.auth import require_admin
from turnstile.api.v1.errors import http_error_from_identity_error
from turnstile.core.database import get_db
from turnstile.core.exceptions import IdentityError
from turnstile.models import Authority
from turnstile.schemas.auth import CurrentUser
from turnstile.schemas.authorities import (
    AuthoritiesListResponse,
    AuthorityCreateRequest,
    AuthorityRenameRequest,
    AuthorityResponse,
)
from turnstile.services.authority_service import AuthorityService

router = APIRouter()


def get_authority_service(db: Annotated[Session, Depends(get_db)]) -> AuthorityService:
    return AuthorityService(db)


def _to_response(authority: Authority) -> AuthorityResponse:
    return AuthorityResponse(
        name=authority.name,
        users=sorted(u.username for u in authority.users),
    )


@router.get("", response_model=AuthoritiesListResponse)
def list_authorities(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    authorities: Annotated[AuthorityService, Depends(get_authority_service)],
) -> AuthoritiesListResponse:
    return AuthoritiesListResponse(
        authorities=[_to_response(a) for a in authorities.list_authorities()]
    )


@router.post("", response_model=AuthorityResponse, status_code=status.HTTP_201_CREATED)
def create_authority(
    body: AuthorityCreateRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    authorities: Annotated[AuthorityService, Depends(get_authority_service)],
) -> AuthorityResponse:
    try:
        authority = authorities.create_authority(body.name)
    except IdentityError as e:
        raise http_error_from_identity_error(e) from e
    return _to_response(authority)


@router.get("/{name}", response_model=AuthorityResponse)
def get_authority(
    name: str,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    authorities: Annotated[AuthorityService, Depends(get_authority_service)],
) -> AuthorityResponse:
    try:
        authority = authorities.get_by_name(name)
    except IdentityError as e:
        raise http_error_from_identity_error(e) from e
    return _to_response(authority)


@router.put("/{name}", response_model=AuthorityResponse)
def rename_authority(
    name: str,
    body: AuthorityRenameRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    authorities: Annotated[AuthorityService, Depends(get_authority_service)],
) -> AuthorityResponse:
    """Rename an authority; users holding it keep it under the new name."""
    try:
        authority = authorities.update_authority(name, body.new_name)
    except IdentityError as e:
        raise http_error_from_identity_error(e) from e
    return _to_response(authority)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_authority(
    name: str,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    authorities: Annotated[AuthorityService, Depends(get_authority_service)],
) -> None:
    """Delete an authority and unlink it from every user holding it."""
    try:
        authorities.delete_authority(name)
    except IdentityError as e:
        raise http_error_from_identity_error(e) from e
