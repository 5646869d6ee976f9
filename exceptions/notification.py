"""
Notification-related exceptions.
"""

from .base import ShopException


class NotificationException(ShopException):
    """Base exception for notification errors."""
    pass


class EmailDeliveryException(NotificationException):
    """Raised when the email provider rejects or times out on a message."""

    def __init__(self, subject: str, reason: str):
        super().__init__(
            f"Failed to send email '{subject}': {reason}",
            details={'subject': subject, 'reason': reason}
        )
        self.subject = subject
        self.reason = reason
