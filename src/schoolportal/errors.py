from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found or not visible to the caller."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when the caller has no valid session or supplies wrong credentials."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when an authenticated user lacks the role or permission for an action."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""
