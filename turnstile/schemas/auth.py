"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from turnstile.core.security import USERNAME_MAX_LEN, USERNAME_MIN_LEN


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(
        ..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN, description="Username"
    )
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class TokenResponse(BaseModel):
    """JWT access token returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class ChangePasswordRequest(BaseModel):
    """Old and new password for the authenticated caller."""

    old_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


class CurrentUser(BaseModel):
    """Authenticated caller (username, authorities) for dependency injection."""

    model_config = ConfigDict(from_attributes=True)

    username: str
    authorities: list[str]
