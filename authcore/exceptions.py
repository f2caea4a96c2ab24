"""Error taxonomy for the credential core.

Every error carries a tagged ``kind`` and a ``context`` dict with structured
details, so callers branch on the kind instead of matching message strings.

Components raise the most specific error they can. The ``AuthService`` facade
collapses the distinctions that would leak account state to an untrusted
caller (unknown user vs wrong password, expired vs never-issued reset token).
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Kinds of failure reported by the credential core."""

    VALIDATION = "validation"
    DUPLICATE_USERNAME = "duplicate_username"
    USERNAME_TAKEN = "username_taken"
    NOT_FOUND = "not_found"
    AUTHENTICATION_FAILED = "authentication_failed"
    RESET_TOKEN_INVALID = "reset_token_invalid"
    HASH_FORMAT = "hash_format"
    TOKEN_INVALID = "token_invalid"
    STORAGE = "storage"


class ResetRejection(str, Enum):
    """Internal reason a reset token was refused. Never shown to callers."""

    NOT_PENDING = "not_pending"
    EXPIRED = "expired"
    MISMATCH = "mismatch"
    CONSUMED = "consumed"


class AuthError(Exception):
    """Base exception for the credential core."""

    kind: ErrorKind
    default_message = "Authentication error"

    def __init__(self, message: str | None = None, **context: Any):
        self.context = context
        super().__init__(message or self.default_message)


class ValidationError(AuthError):
    """Missing or malformed input."""

    kind = ErrorKind.VALIDATION
    default_message = "Invalid input"


class DuplicateUsernameError(AuthError):
    """Insert violated the unique username constraint."""

    kind = ErrorKind.DUPLICATE_USERNAME

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"User with username={username} already exists", username=username)


class UsernameTakenError(AuthError):
    """Registration attempted with a username that is already registered."""

    kind = ErrorKind.USERNAME_TAKEN
    default_message = "Username is already taken"


class NotFoundError(AuthError):
    """Entity not found in the store."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity_type: str, identifier: str):
        self.entity_type = entity_type
        self.identifier = identifier
        super().__init__(
            f"{entity_type} not found: {identifier}",
            entity_type=entity_type,
            identifier=identifier,
        )


class AuthenticationFailedError(AuthError):
    """Wrong credentials. Deliberately says nothing about which part was wrong."""

    kind = ErrorKind.AUTHENTICATION_FAILED
    default_message = "Invalid username or password"


class ResetTokenInvalidError(AuthError):
    """Reset token is absent, expired, superseded, wrong or already used."""

    kind = ErrorKind.RESET_TOKEN_INVALID
    default_message = "Reset token is invalid or expired"

    def __init__(self, reason: ResetRejection | None = None):
        self.reason = reason
        if reason is None:
            super().__init__()
        else:
            super().__init__(reason=reason.value)


class HashFormatError(AuthError):
    """Stored hash is not a valid bcrypt hash."""

    kind = ErrorKind.HASH_FORMAT
    default_message = "Malformed password hash"


class TokenInvalidError(AuthError):
    """Session token is malformed, badly signed or expired."""

    kind = ErrorKind.TOKEN_INVALID
    default_message = "Invalid or expired token"


class StorageError(AuthError):
    """I/O or transaction failure in the credential store."""

    kind = ErrorKind.STORAGE
    default_message = "Credential store operation failed"
