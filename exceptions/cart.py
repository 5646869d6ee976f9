"""
Cart-related exceptions.
"""

from .base import ShopException


class CartException(ShopException):
    """Base exception for cart-related errors."""
    pass


class EmptyCartException(CartException):
    """Raised when trying to check out or request an order with an empty cart."""

    def __init__(self, user_id: str):
        super().__init__(
            "Cart is empty",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class CartNotFoundException(CartException):
    """Raised when a mutation requires an existing active cart."""

    def __init__(self, user_id: str):
        super().__init__(
            f"No active cart for user {user_id}",
            details={'user_id': user_id}
        )
        self.user_id = user_id
