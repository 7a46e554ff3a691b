"""Password hashing and JWT creation/verification for authentication."""

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from turnstile.core.config import AUTHORITY_NAME_MAX_LEN, settings

# bcrypt only looks at the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72

# Column limits for users/authorities (see turnstile.models).
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 20
PASSWORD_HASH_MAX_LEN = 60
AUTHORITY_NAME_MIN_LEN = 1


def _password_bytes(plain_password: str) -> bytes:
    # surrogatepass keeps lone surrogates hashable instead of raising UnicodeEncodeError.
    return plain_password.encode("utf-8", errors="surrogatepass")[:BCRYPT_MAX_BYTES]


class BcryptPasswordHasher:
    """One-way salted password hashing backed by bcrypt."""

    def __init__(self, rounds: int | None = None) -> None:
        self.rounds = rounds if rounds is not None else settings.BCRYPT_ROUNDS

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. Do not store plain passwords."""
        pw_bytes = _password_bytes(plain_password)
        return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain_password: str, hashed: str) -> bool:
        """Verify a plain password against a stored hash."""
        pw_bytes = _password_bytes(plain_password)
        try:
            return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False


def hash_password(plain_password: str) -> str:
    """Hash a password with the configured cost factor."""
    return BcryptPasswordHasher().hash(plain_password)


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    return BcryptPasswordHasher().verify(plain_password, hashed)


def create_access_token(
    sub: str,
    authorities: Iterable[str],
    version: int = 0,
    expire_minutes: int | None = None,
) -> str:
    """Create a JWT access token with sub (username), authorities, ver, iat and exp."""
    now = datetime.now(UTC)
    minutes = expire_minutes if expire_minutes is not None else settings.JWT_EXPIRE_MINUTES
    payload: dict[str, Any] = {
        "sub": sub,
        "authorities": sorted(authorities),
        "ver": version,
        "exp": now + timedelta(minutes=minutes),
        "iat": now,
    }
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (sub, authorities, ver, exp, iat).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
    )
