"""
Custom exceptions for the shop backend.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
ShopException (base)
├── CartException
│   ├── EmptyCartException
│   └── CartNotFoundException
├── ProductException
│   ├── ProductNotFoundException
│   └── InvalidProductDataException
├── OrderException
│   ├── OrderNotFoundException
│   └── InvalidOrderStateException
├── CheckoutException
│   ├── CheckoutValidationException
│   └── InvalidPackageSelectionException
├── PaymentException
│   ├── PaymentInitializationException
│   └── PaymentVerificationException
├── NotificationException
│   └── EmailDeliveryException
└── AuthException
    ├── SessionTokenException
    └── AdminRequiredException

Usage:
------
Services raise specific exceptions:
    raise EmptyCartException(user_id=user.id)

Routers catch and map them to HTTP responses:
    try:
        result = await CheckoutService.initiate(user, request, session)
    except CheckoutValidationException as e:
        raise HTTPException(status_code=400, detail={"error": e.message, "fields": e.fields})
"""

from .base import ShopException
from .auth import AuthException, SessionTokenException, AdminRequiredException
from .cart import CartException, EmptyCartException, CartNotFoundException
from .checkout import CheckoutException, CheckoutValidationException, InvalidPackageSelectionException
from .notification import NotificationException, EmailDeliveryException
from .order import OrderException, OrderNotFoundException, InvalidOrderStateException
from .payment import PaymentException, PaymentInitializationException, PaymentVerificationException
from .product import ProductException, ProductNotFoundException, InvalidProductDataException

__all__ = [
    # Base
    'ShopException',

    # Auth
    'AuthException',
    'SessionTokenException',
    'AdminRequiredException',

    # Cart
    'CartException',
    'EmptyCartException',
    'CartNotFoundException',

    # Checkout
    'CheckoutException',
    'CheckoutValidationException',
    'InvalidPackageSelectionException',

    # Notification
    'NotificationException',
    'EmailDeliveryException',

    # Order
    'OrderException',
    'OrderNotFoundException',
    'InvalidOrderStateException',

    # Payment
    'PaymentException',
    'PaymentInitializationException',
    'PaymentVerificationException',

    # Product
    'ProductException',
    'ProductNotFoundException',
    'InvalidProductDataException',
]
