from enum import Enum


class DeliveryPayment(str, Enum):
    """
    When the shopper pays the delivery fee.

    BEFORE: Delivery fee is settled together with the order
    AFTER: Delivery fee is paid to the courier on arrival
    """
    BEFORE = "before"
    AFTER = "after"

    def get_label(self) -> str:
        if self == DeliveryPayment.AFTER:
            return "After delivery"
        return "Before delivery"
