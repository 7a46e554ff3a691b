"""Translate identity service errors into HTTP errors."""

from fastapi import HTTPException, status

from turnstile.core.exceptions import (
    AccessDeniedError,
    AccountStatusError,
    AuthenticationError,
    ConcurrentModificationError,
    DuplicateAuthorityError,
    DuplicateIdentityError,
    IdentityError,
    InvalidInputError,
    SecurityObjectNotFound,
)


def http_error_from_identity_error(exc: IdentityError) -> HTTPException:
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message)
    if isinstance(
        exc, (DuplicateIdentityError, DuplicateAuthorityError, ConcurrentModificationError)
    ):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)
    if isinstance(exc, SecurityObjectNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, AccountStatusError):
        # Only reachable after the password matched.
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(exc, AuthenticationError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(exc, AccessDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
