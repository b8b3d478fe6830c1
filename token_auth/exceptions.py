"""Auth exceptions.

Every exception carries a client-safe ``message`` and an optional internal
``detail``. Only the message (and the class ``code``) may leave the process.
"""

from __future__ import annotations


class AuthException(Exception):
    """Base auth exception with HTTP status."""

    code = "auth_error"
    default_message = "Authentication error"
    default_status = 400

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
        detail: str | None = None,
    ):
        self.message = message or self.default_message
        self.status_code = status_code or self.default_status
        self.detail = detail
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, detail={self.detail!r})"


class InvalidToken(AuthException):
    code = "invalid_token"
    default_message = "Invalid token"
    default_status = 401


class TokenExpired(AuthException):
    code = "token_expired"
    default_message = "Token expired"
    default_status = 401


class TokenGeneration(AuthException):
    code = "token_generation"
    default_message = "Failed to generate tokens"
    default_status = 500


class StorageError(AuthException):
    code = "storage_error"
    default_message = "Token storage unavailable"
    default_status = 503


class InvalidConfiguration(AuthException):
    code = "invalid_configuration"
    default_message = "Invalid token service configuration"
    default_status = 500


class InvalidCredentials(AuthException):
    code = "invalid_credentials"
    default_message = "Invalid credentials"
    default_status = 401


class UserAlreadyExists(AuthException):
    code = "user_exists"
    default_message = "Username already exists"
    default_status = 409


class RotationAborted(Exception):
    """Raised by a refresh store when the atomic rotation refused to commit."""

    OLD_NOT_FOUND = "old_not_found"
    USER_MISMATCH = "user_mismatch"
    NEW_EXISTS = "new_exists"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
