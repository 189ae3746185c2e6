"""
Exception hierarchy for the user store.
Each error knows the HTTP status the request handler answers with.
"""
from __future__ import annotations


class UserStoreError(Exception):
    """Base class for every failure the request handler maps to a response."""
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(UserStoreError):
    """Missing or malformed input."""
    status_code = 400


class AuthError(UserStoreError):
    """Admin credentials do not match the privileged record."""
    status_code = 401


class Forbidden(UserStoreError):
    """Operation not allowed: touching the privileged record, or the admin account has expired."""
    status_code = 403


class NotFound(UserStoreError):
    status_code = 404


class MethodNotAllowed(UserStoreError):
    status_code = 405


class Conflict(UserStoreError):
    """Username already taken."""
    status_code = 409


class ParseError(UserStoreError):
    """The users block is missing from the source file or cannot be read as data."""
    status_code = 500


class TransportError(UserStoreError):
    """A call to the remote file store failed."""
    status_code = 500


class StaleContentError(TransportError):
    """The remote store refused the write because the content hash changed underneath us."""
