"""Error taxonomy for identity management and authentication."""


class IdentityError(Exception):
    """Base class for every error raised by the identity services."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidInputError(IdentityError, ValueError):
    """A required field is missing or malformed."""


class DuplicateIdentityError(IdentityError):
    """Raised when creating a user whose username is already taken."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Username {username} already present")


class DuplicateAuthorityError(IdentityError):
    """Raised when creating (or renaming to) an authority name that already exists."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Authority {name} already present")


class SecurityObjectNotFound(IdentityError, LookupError):
    """An operation targeted a user or authority that does not exist."""


class UserNotFoundError(SecurityObjectNotFound):
    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Could not find User {username}")


class AuthorityNotFoundError(SecurityObjectNotFound):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Could not find Authority {name}")


class AuthenticationError(IdentityError):
    """Presented credentials did not yield an authenticated session."""


class BadCredentialsError(AuthenticationError):
    def __init__(self, message: str = "Bad credentials") -> None:
        super().__init__(message)


class AccountStatusError(AuthenticationError):
    """The password matched but the account state forbids authentication."""


class DisabledAccountError(AccountStatusError):
    def __init__(self, message: str = "User is disabled") -> None:
        super().__init__(message)


class LockedAccountError(AccountStatusError):
    def __init__(self, message: str = "User account is locked") -> None:
        super().__init__(message)


class CredentialsExpiredError(AccountStatusError):
    def __init__(self, message: str = "User credentials have expired") -> None:
        super().__init__(message)


class AccountExpiredError(AccountStatusError):
    def __init__(self, message: str = "User account has expired") -> None:
        super().__init__(message)


class AccessDeniedError(IdentityError):
    """Raised when an operation needs an authenticated caller and there is none."""


class ConcurrentModificationError(IdentityError):
    """A commit hit a constraint because another transaction changed the same rows."""
