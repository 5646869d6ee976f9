"""
Payment-related exceptions.
"""

from .base import ShopException


class PaymentException(ShopException):
    """Base exception for payment-related errors."""
    pass


class PaymentInitializationException(PaymentException):
    """Raised when the provider refuses or fails to start a transaction."""

    def __init__(self, order_id: str, reason: str):
        super().__init__(
            reason or "Payment init failed",
            details={'order_id': order_id, 'reason': reason}
        )
        self.order_id = order_id
        self.reason = reason


class PaymentVerificationException(PaymentException):
    """Raised when the provider's verification endpoint cannot be reached or parsed."""

    def __init__(self, reference: str, reason: str):
        super().__init__(
            f"Could not verify transaction {reference}: {reason}",
            details={'reference': reference, 'reason': reason}
        )
        self.reference = reference
        self.reason = reason
