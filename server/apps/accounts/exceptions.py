"""Exceptions for accounts app.

Every error carries the same ``public_message`` so responses never tell
a caller whether an email is registered.
"""

from typing import Final

GENERIC_AUTH_MESSAGE: Final = 'Something went wrong, please try again.'


class AuthError(Exception):
    """Base class for login and session failures."""

    public_message = GENERIC_AUTH_MESSAGE


class DeliveryError(AuthError):
    """Raised when a one-time code could not be sent."""


class InvalidCodeError(AuthError):
    """Raised when a one-time code is wrong, used or expired."""


class NoSessionError(AuthError):
    """Raised when the caller presents no valid session."""


class UserNotFoundError(AuthError):
    """Raised when no account record correlates with an identity."""
