"""Username/password authentication with account-state gating."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from turnstile.core.exceptions import (
    AccountExpiredError,
    BadCredentialsError,
    CredentialsExpiredError,
    DisabledAccountError,
    LockedAccountError,
    UserNotFoundError,
)

if TYPE_CHECKING:
    from turnstile.models import User
    from turnstile.services.user_service import UserService

logger = logging.getLogger(__name__)

# Verified against when the username is unknown, so a miss costs one bcrypt check too.
_USER_NOT_FOUND_PASSWORD = "userNotFoundPassword"


@dataclass
class AuthenticatedSession:
    """Outcome of a successful authentication."""

    username: str
    authorities: frozenset[str] = field(default_factory=frozenset)
    authenticated: bool = True


@dataclass
class SecurityContext:
    """Holds the caller's session for operations that act on the caller (change_password)."""

    authentication: AuthenticatedSession | None = None


class AuthenticationManager:
    """
    Decide whether a username/password pair yields an AuthenticatedSession.

    Checks run in a fixed order and the first failure wins:

    1. lookup        unknown username       -> BadCredentialsError
    2. password      hash mismatch          -> BadCredentialsError
    3. enabled       enabled is False       -> DisabledAccountError
    4. lock          account_non_locked off -> LockedAccountError
    5. credentials   credentials expired    -> CredentialsExpiredError
    6. account       account expired        -> AccountExpiredError

    The password is checked before any state flag, so a caller without valid
    credentials learns nothing about the account's state.
    """

    def __init__(self, user_service: UserService) -> None:
        self.user_service = user_service
        self._dummy_hash: str | None = None

    def authenticate(self, username: str, password: str) -> AuthenticatedSession:
        try:
            user = self.user_service.load_user_by_username(username)
        except UserNotFoundError:
            self._mitigate_timing(password)
            logger.warning(
                "Authentication rejected",
                extra={"username": username, "reason": "unknown_user"},
            )
            raise BadCredentialsError() from None

        if not password or not self.user_service.hasher.verify(password, user.password):
            self._reject(username, "bad_credentials")
            raise BadCredentialsError()
        self._check_account_state(user)

        logger.info("Authentication succeeded: username=%s", username)
        return AuthenticatedSession(
            username=user.username,
            authorities=frozenset(user.authority_names),
        )

    def _check_account_state(self, user: User) -> None:
        if not user.enabled:
            self._reject(user.username, "disabled")
            raise DisabledAccountError()
        if not user.account_non_locked:
            self._reject(user.username, "locked")
            raise LockedAccountError()
        if not user.credentials_non_expired:
            self._reject(user.username, "credentials_expired")
            raise CredentialsExpiredError()
        if not user.account_non_expired:
            self._reject(user.username, "account_expired")
            raise AccountExpiredError()

    def _reject(self, username: str, reason: str) -> None:
        logger.warning("Authentication rejected", extra={"username": username, "reason": reason})

    def _mitigate_timing(self, password: str) -> None:
        hasher = self.user_service.hasher
        if self._dummy_hash is None:
            self._dummy_hash = hasher.hash(_USER_NOT_FOUND_PASSWORD)
        hasher.verify(password or "", self._dummy_hash)
