"""Errors surfaced by the auth action gateway."""

from __future__ import annotations


class AuthError(Exception):
    """Base class for user-facing auth failures."""

    code = "auth_error"
    http_status = 400
    default_message = "Authentication failed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(AuthError):
    """Malformed input rejected before any remote call."""

    code = "validation_error"
    http_status = 400
    default_message = "Invalid input."


class CredentialsError(AuthError):
    code = "invalid_credentials"
    http_status = 401
    default_message = "Invalid credentials. Please try again."


class AccountCreationError(AuthError):
    code = "account_creation_failed"
    http_status = 400
    default_message = "Failed to create account."


class ServiceUnavailableError(AuthError):
    """The remote auth/data service is missing or failed unexpectedly."""

    code = "service_unavailable"
    http_status = 503
    default_message = "Authentication service unavailable. Please try again."


class DemoUnavailableError(AuthError):
    code = "demo_unavailable"
    http_status = 503
    default_message = "Demo login failed. Please try again or contact support."


__all__ = [
    "AuthError",
    "ValidationError",
    "CredentialsError",
    "AccountCreationError",
    "ServiceUnavailableError",
    "DemoUnavailableError",
]
