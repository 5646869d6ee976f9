"""
Order State Machine for validating order status transitions.

Orders have exactly one transition: PENDING -> PAID, performed by the verified
payment webhook. PAID is terminal, so a redelivered webhook finds nothing to do.
"""

import logging
from typing import Dict, List, Set

from enums.order_status import OrderStatus

logger = logging.getLogger(__name__)


class OrderStatusTransition:
    """Represents a valid status transition with metadata"""

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus, description: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.description = description

    def __repr__(self):
        return f"{self.from_status.value} -> {self.to_status.value}"


class OrderStateMachine:

    VALID_TRANSITIONS: List[OrderStatusTransition] = [
        OrderStatusTransition(
            OrderStatus.PENDING,
            OrderStatus.PAID,
            description="Payment verified with the provider"
        ),
    ]

    _transition_map: Dict[OrderStatus, Set[OrderStatus]] = {}

    @classmethod
    def _build_transition_map(cls):
        if cls._transition_map:
            return
        for transition in cls.VALID_TRANSITIONS:
            cls._transition_map.setdefault(transition.from_status, set()).add(transition.to_status)

    @classmethod
    def is_valid_transition(cls, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        cls._build_transition_map()
        return to_status in cls._transition_map.get(from_status, set())

    @classmethod
    def get_valid_transitions(cls, from_status: OrderStatus) -> List[OrderStatus]:
        cls._build_transition_map()
        return list(cls._transition_map.get(from_status, set()))

    @classmethod
    def is_final_status(cls, status: OrderStatus) -> bool:
        """A status with no outgoing transition."""
        return not cls.get_valid_transitions(status)

    @classmethod
    def validate_transition(cls, order_id: str, from_status: OrderStatus, to_status: OrderStatus) -> None:
        """
        Raises:
            InvalidOrderStateException: if the transition is not allowed
        """
        from exceptions.order import InvalidOrderStateException

        if not cls.is_valid_transition(from_status, to_status):
            logger.warning(f"Rejected order {order_id} transition {from_status.value} -> {to_status.value}")
            raise InvalidOrderStateException(order_id, from_status.value, OrderStatus.PENDING.value)
