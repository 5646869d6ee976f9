from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"   # Created at checkout, waiting for the payment webhook
    PAID = "paid"         # Verified by the payment provider (terminal)
