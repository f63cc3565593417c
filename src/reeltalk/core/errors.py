"""Error taxonomy shared by the discussion services.

Services raise these and never swallow them; the HTTP layer maps each one to a
status code in a single exception handler.
"""

from __future__ import annotations


class ForumError(RuntimeError):
    """Base exception for discussion-engine failures."""

    status_code: int = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class Unauthorized(ForumError):
    """Raised when an operation needs an identity and the caller is anonymous.

    Recoverable: the caller signs in and retries the exact same call.
    """

    status_code = 401

    def __init__(self, detail: str = "Sign in required") -> None:
        super().__init__(detail)


class NotFound(ForumError):
    """Raised when a target id does not exist."""

    status_code = 404


class Forbidden(ForumError):
    """Raised when the caller is signed in but may not change the target."""

    status_code = 403


class Conflict(ForumError):
    """Raised when a mutation could not be applied atomically after one retry."""

    status_code = 409


class Invalid(ForumError):
    """Raised for malformed input: unknown sort key, corrupt cursor, bad content."""

    status_code = 400


class StorageFailure(ForumError):
    """Raised when the underlying store is unavailable.

    Write paths roll back before raising, so state is as if the call never
    happened.
    """

    status_code = 503

    def __init__(self, detail: str = "Storage unavailable") -> None:
        super().__init__(detail)


__all__ = [
    "Conflict",
    "Forbidden",
    "ForumError",
    "Invalid",
    "NotFound",
    "StorageFailure",
    "Unauthorized",
]
