"""
Root of the shop's exception tree.

Services raise ShopException subclasses and never HTTP errors. Routers in
web/ catch the specific subclass and translate it to a response:

    CheckoutValidationException       -> 400 {"error", "fields"}
    EmptyCartException                -> 400
    InvalidPackageSelectionException  -> 400
    ProductNotFoundException          -> 404
    SessionTokenException             -> 401 (web/dependencies.py)
    AdminRequiredException            -> 403 (web/dependencies.py)
    PaymentInitializationException    -> 502, order stays pending
    EmailDeliveryException            -> 500 on /order-request

The Paystack webhook (processing/processing.py) is the exception: once the
signature is valid it logs failures and still answers 200. Anything that
escapes a router reaches the catch-all handler in app.py.
"""


class ShopException(Exception):
    """
    Base for every domain error raised by services and repositories.

    Attributes:
        message: Text safe to return in an HTTP error body
        details: Entity ids and states for logs (order_id, product_id, ...)
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ', '.join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"
