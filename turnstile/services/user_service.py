"""User management: create, update, delete, look up users and change passwords."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from turnstile.core.exceptions import (
    AccessDeniedError,
    ConcurrentModificationError,
    DuplicateIdentityError,
    InvalidInputError,
    UserNotFoundError,
)
from turnstile.core.security import USERNAME_MAX_LEN, BcryptPasswordHasher
from turnstile.models import User
from turnstile.schemas.users import UserDetails
from turnstile.services.authentication import AuthenticationManager, SecurityContext
from turnstile.services.authority_service import AuthorityService, validate_authority_name

logger = logging.getLogger(__name__)


def _validate_username(username: str | None) -> str:
    if not username or not username.strip():
        raise InvalidInputError("Username must be set and non-empty")
    if len(username) > USERNAME_MAX_LEN:
        raise InvalidInputError(f"Username must be at most {USERNAME_MAX_LEN} characters")
    return username


def _validate_attributes(attributes: object) -> dict:
    if not isinstance(attributes, dict) or not all(isinstance(k, str) for k in attributes):
        raise InvalidInputError("Attributes must be a mapping with string keys")
    return dict(attributes)


class UserService:
    """
    User CRUD against one SQLAlchemy session, with password hashing.

    Every mutation is a single transaction: it commits on success and rolls
    back before re-raising on failure. Authority names given in UserDetails
    are interned through AuthorityService, so users naming the same authority
    share one row.
    """

    def __init__(self, db: Session, hasher: BcryptPasswordHasher | None = None) -> None:
        self.db = db
        self.hasher = hasher if hasher is not None else BcryptPasswordHasher()
        self.authority_service = AuthorityService(db)
        self._authentication_manager: AuthenticationManager | None = None

    def authentication_manager(self) -> AuthenticationManager:
        """Authentication manager reading users through this service."""
        if self._authentication_manager is None:
            self._authentication_manager = AuthenticationManager(self)
        return self._authentication_manager

    def create_user(self, details: UserDetails) -> User:
        username = _validate_username(details.username)
        if not details.password:
            raise InvalidInputError("Password must be set and non-empty")
        names = [validate_authority_name(n) for n in details.authorities]
        attributes = _validate_attributes(details.attributes)
        if self.user_exists(username):
            raise DuplicateIdentityError(username)

        user = User(
            username=username,
            password=self.hasher.hash(details.password),
            enabled=details.enabled,
            account_non_expired=details.account_non_expired,
            account_non_locked=details.account_non_locked,
            credentials_non_expired=details.credentials_non_expired,
            token_version=0,
            attributes=attributes,
        )
        try:
            user.authorities = self.authority_service.intern(names)
            self.db.add(user)
            self.db.commit()
        except IntegrityError as e:
            # Primary key conflict: the username was taken concurrently.
            self.db.rollback()
            raise DuplicateIdentityError(username) from e
        except Exception:
            self.db.rollback()
            raise
        logger.info(
            "User created",
            extra={"username": username, "authorities": ",".join(sorted(names))},
        )
        return user

    def update_user(self, details: UserDetails) -> User:
        """
        Overwrite state flags and authorities of an existing user.

        The password is re-hashed only when details.password is set, and
        attributes replaces the stored extra fields. Sessions already issued to
        the user are left alone.
        """
        names = [validate_authority_name(n) for n in details.authorities]
        attributes = _validate_attributes(details.attributes)
        user = self.load_user_by_username(details.username)
        user.enabled = details.enabled
        user.account_non_expired = details.account_non_expired
        user.account_non_locked = details.account_non_locked
        user.credentials_non_expired = details.credentials_non_expired
        user.attributes = attributes
        if details.password:
            user.password = self.hasher.hash(details.password)
        try:
            user.authorities = self.authority_service.intern(names)
            self.db.commit()
        except IntegrityError as e:
            # The user or an interned authority was deleted concurrently.
            self.db.rollback()
            raise ConcurrentModificationError(
                f"User {details.username} was modified concurrently"
            ) from e
        except Exception:
            self.db.rollback()
            raise
        logger.info(
            "User updated",
            extra={
                "username": user.username,
                "password_changed": bool(details.password),
                "authorities": ",".join(sorted(names)),
            },
        )
        return user

    def delete_user(self, username: str) -> None:
        """Delete a user. Authorities it held are kept, even if nobody holds them anymore."""
        user = self.load_user_by_username(username)
        self.db.delete(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConcurrentModificationError(f"User {username} was modified concurrently") from e
        except Exception:
            self.db.rollback()
            raise
        logger.info("User deleted: username=%s", username)

    def change_password(
        self, context: SecurityContext, old_password: str, new_password: str
    ) -> User:
        """
        Change the password of the caller held in context.

        The caller must re-authenticate with old_password (the full
        authentication check, including account state). On success the new hash
        is stored, token_version is bumped and the caller's session is marked
        unauthenticated, forcing a new login.
        """
        authentication = context.authentication if context is not None else None
        if authentication is None or not authentication.authenticated:
            raise AccessDeniedError(
                "Can't change password as no authenticated user found in context"
            )
        if not new_password:
            raise InvalidInputError("New password must be set and non-empty")

        username = authentication.username
        self.authentication_manager().authenticate(username, old_password)

        user = self.load_user_by_username(username)
        user.password = self.hasher.hash(new_password)
        user.token_version = (user.token_version or 0) + 1
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        authentication.authenticated = False
        logger.info("Password changed: username=%s", username)
        return user

    def user_exists(self, username: str) -> bool:
        return bool(username) and self.db.get(User, username) is not None

    def load_user_by_username(self, username: str) -> User:
        user = self.db.get(User, username) if username else None
        if user is None:
            raise UserNotFoundError(username)
        return user

    def list_users(self) -> list[User]:
        return list(self.db.scalars(select(User).order_by(User.username)))
