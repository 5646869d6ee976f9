"""
Checkout-related exceptions.

Both are raised before anything is written, so a failed checkout never
leaves an order behind.
"""

from .base import ShopException


class CheckoutException(ShopException):
    """Base exception for checkout errors."""
    pass


class CheckoutValidationException(CheckoutException):
    """Raised when contact fields are invalid; carries one reason per field."""

    def __init__(self, fields: dict[str, str]):
        super().__init__(
            "Invalid contact details",
            details={'fields': fields}
        )
        self.fields = fields


class InvalidPackageSelectionException(CheckoutException):
    """Raised when an add-on package selection cannot be honored."""

    def __init__(self, reason: str, package_id: str | None = None, product_id: str | None = None):
        details = {'reason': reason}
        if package_id:
            details['package_id'] = package_id
        if product_id:
            details['product_id'] = product_id
        super().__init__(f"Invalid package selection: {reason}", details)
        self.reason = reason
        self.package_id = package_id
        self.product_id = product_id
