"""Domain errors raised by the stores and the session gate.

Routes catch these and turn them into a flash notice plus a redirect;
none of them is meant to reach the client as a raw error body.
"""

from typing import Optional


class DsaNotesError(Exception):
    """Base class for every workflow-level failure."""

    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(DsaNotesError):
    default_message = "Missing or malformed fields"


class NotFound(DsaNotesError):
    default_message = "Question not found"


class AuthRequired(DsaNotesError):
    default_message = "Please log in to view this resource"


class TokenInvalidOrExpired(DsaNotesError):
    default_message = "Password reset token is invalid or has expired."


class DuplicateIdentity(DsaNotesError):
    default_message = "Username or Email already exists."


class StoreUnavailable(DsaNotesError):
    default_message = "Database is unavailable, please try again later"


__all__ = [
    "DsaNotesError",
    "ValidationError",
    "NotFound",
    "AuthRequired",
    "TokenInvalidOrExpired",
    "DuplicateIdentity",
    "StoreUnavailable",
]
