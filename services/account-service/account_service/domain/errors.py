"""Typed failures surfaced by account workflows and mapped to HTTP at the boundary."""

from __future__ import annotations

from enum import Enum


class AuthFailure(str, Enum):
    no_token = "no_token"
    invalid_token = "invalid_token"
    invalid_or_expired = "invalid_or_expired"
    user_not_found = "user_not_found"
    session_not_current = "session_not_current"
    bad_credentials = "bad_credentials"
    unknown_email = "unknown_email"


class ValidationFailure(str, Enum):
    bad_request = "bad_request"
    already_verified = "already_verified"
    unsupported_image = "unsupported_image"
    avatar_too_large = "avatar_too_large"
    password_too_long = "password_too_long"


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing or invalid."""


class AccountServiceError(Exception):
    """Base class for failures that carry an HTTP status and a client-safe message."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, *, reason: Enum | None = None) -> None:
        self.message = message or self.default_message
        self.reason = reason
        super().__init__(self.message)


class ValidationError(AccountServiceError):
    status_code = 400
    default_message = "Bad Request"


class AuthError(AccountServiceError):
    status_code = 401
    default_message = "Not authorized"


class NotFoundError(AccountServiceError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AccountServiceError):
    status_code = 409
    default_message = "Email in use"


class ServerError(AccountServiceError):
    """Internal failure; the detail is logged but never returned to the caller."""

    status_code = 500
