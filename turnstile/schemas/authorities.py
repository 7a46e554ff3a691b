"""Request/response schemas for authority management."""

from pydantic import BaseModel, Field

from turnstile.core.security import AUTHORITY_NAME_MAX_LEN, AUTHORITY_NAME_MIN_LEN


class AuthorityCreateRequest(BaseModel):
    name: str = Field(
        ..., min_length=AUTHORITY_NAME_MIN_LEN, max_length=AUTHORITY_NAME_MAX_LEN
    )


class AuthorityRenameRequest(BaseModel):
    new_name: str = Field(
        ..., min_length=AUTHORITY_NAME_MIN_LEN, max_length=AUTHORITY_NAME_MAX_LEN
    )


class AuthorityResponse(BaseModel):
    """Authority and the usernames that currently hold it."""

    name: str
    users: list[str] = Field(default_factory=list)


class AuthoritiesListResponse(BaseModel):
    """Response for GET /authorities (admin only)."""

    authorities: list[AuthorityResponse]
