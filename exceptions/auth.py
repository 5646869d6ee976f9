"""
Authentication-related exceptions.
"""

from .base import ShopException


class AuthException(ShopException):
    """Base exception for authentication errors."""
    pass


class SessionTokenException(AuthException):
    """Raised when a session token is missing, malformed, expired or forged."""

    def __init__(self, reason: str):
        super().__init__(
            f"Invalid session token: {reason}",
            details={'reason': reason}
        )
        self.reason = reason


class AdminRequiredException(AuthException):
    """Raised when a non-admin user calls an admin endpoint."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User {user_id} is not an admin",
            details={'user_id': user_id}
        )
        self.user_id = user_id
