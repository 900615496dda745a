"""
Error taxonomy for the credential store.

Failures are raised as AuthError carrying one AuthErrorCode; the code's value is
the identifier string callers map to HTTP statuses or messages. Verification
helpers return None instead of raising.
"""
from __future__ import annotations

from enum import Enum

__all__ = ["AuthErrorCode", "AuthError"]


class AuthErrorCode(str, Enum):
    USERNAME_TAKEN = "username_taken"
    EMAIL_TAKEN = "email_taken"
    INVALID_CREDENTIALS = "invalid_credentials"
    MISSING_REFRESH_TOKEN = "missing_refresh_token"
    INVALID_REFRESH_TOKEN = "invalid_refresh_token"
    REFRESH_TOKEN_EXPIRED = "refresh_token_expired"
    USER_NOT_FOUND = "user_not_found"
    INVALID_CURRENT_PASSWORD = "invalid_current_password"
    MISSING_PARAMS = "missing_params"
    INVALID_RESET_TOKEN = "invalid_reset_token"
    CREDENTIALS_REQUIRED = "credentials required"
    EMAIL_REQUIRED = "email required"
    FIELDS_REQUIRED = "username, email and password required"

    def __str__(self) -> str:
        return self.value


class AuthError(Exception):
    """Raised by CredentialStore operations; `code` says which check failed."""

    def __init__(self, code: AuthErrorCode, message: str | None = None):
        super().__init__(message or code.value)
        self.code = code
        self.message = message or code.value

    def __str__(self) -> str:
        return self.code.value
