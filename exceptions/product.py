"""
Product-related exceptions.
"""

from .base import ShopException


class ProductException(ShopException):
    """Base exception for product-related errors."""
    pass


class ProductNotFoundException(ProductException):
    """Raised when product is not found (or is hidden from the storefront)."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product {product_id} not found",
            details={'product_id': product_id}
        )
        self.product_id = product_id


class InvalidProductDataException(ProductException):
    """Raised when admin input for a product is unusable."""

    def __init__(self, reason: str, product_id: str | None = None):
        details = {'reason': reason}
        if product_id:
            details['product_id'] = product_id
        super().__init__(reason, details)
        self.product_id = product_id
        self.reason = reason
