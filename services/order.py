import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_commit, session_rollback
from enums.order_status import OrderStatus
from exceptions.order import OrderNotFoundException
from models.order import OrderDTO
from models.orderItem import OrderItemDTO
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository
from repositories.product import ProductRepository
from utils.order_state_machine import OrderStateMachine

logger = logging.getLogger(__name__)


class OrderService:

    @staticmethod
    async def get_with_items(order_id: str, session: AsyncSession) -> tuple[OrderDTO, list[OrderItemDTO]]:
        order = await OrderRepository.get_by_id(order_id, session)
        if order is None:
            raise OrderNotFoundException(order_id)
        items = await OrderItemRepository.get_by_order_id(order_id, session)
        return order, items

    @staticmethod
    async def mark_paid(order_id: str, session: AsyncSession) -> bool:
        """
        Apply a verified payment to an order exactly once.

        Flow (single transaction):
        1. Compare-and-set PENDING -> PAID. If no row changed, the order is unknown
           or already paid and nothing else happens.
        2. Decrement stock per order line with the atomic conditional UPDATE.
        3. If the atomic decrement cannot be applied, fall back to a clamped
           read-modify-write and log it.
        4. Commit.

        Returns:
            True if this call performed the transition, False for a no-op.
        """
        order = await OrderRepository.get_by_id(order_id, session)
        if order is None:
            logger.warning(f"mark_paid: order {order_id} not found")
            return False
        if not OrderStateMachine.is_valid_transition(order.status, OrderStatus.PAID):
            logger.info(f"mark_paid: order {order_id} already {order.status.value}, skipping")
            return False

        try:
            claimed = await OrderRepository.mark_paid_if_pending(order_id, datetime.now(), session)
            if not claimed:
                # Another delivery won the race between our read and the update
                await session_rollback(session)
                logger.info(f"mark_paid: order {order_id} was claimed concurrently, skipping")
                return False

            items = await OrderItemRepository.get_by_order_id(order_id, session)
            for item in items:
                await OrderService._decrement_stock(order_id, item, session)

            await session_commit(session)
        except Exception:
            await session_rollback(session)
            raise

        logger.info(f"✅ Order {order_id} marked PAID, stock decremented for {len(items)} line(s)")
        return True

    @staticmethod
    async def _decrement_stock(order_id: str, item: OrderItemDTO, session: AsyncSession) -> None:
        if not item.product_id or not item.quantity or item.quantity <= 0:
            return

        try:
            # SAVEPOINT so a failing atomic UPDATE leaves the order transition intact
            async with session.begin_nested():
                if await ProductRepository.decrement_stock(item.product_id, item.quantity, session):
                    return
            reason = "insufficient stock or missing product"
        except SQLAlchemyError as e:
            reason = repr(e)

        logger.warning(f"⚠️ Atomic stock decrement failed for order {order_id}, product {item.product_id}, "
                       f"qty {item.quantity} ({reason}); falling back to clamped update")
        next_stock = await ProductRepository.decrement_stock_clamped(item.product_id, item.quantity, session)
        if next_stock is None:
            logger.warning(f"⚠️ Product {item.product_id} of order {order_id} no longer exists, stock not adjusted")
        else:
            logger.warning(f"⚠️ Product {item.product_id} stock clamped to {next_stock} for order {order_id}")

    @staticmethod
    async def list_with_items(session: AsyncSession, limit: int = 200) -> list[tuple[OrderDTO, list[OrderItemDTO]]]:
        """Newest orders first, each with its line snapshot."""
        orders = await OrderRepository.get_all(session, limit)
        items = await OrderItemRepository.get_by_order_ids([order.id for order in orders], session)
        return [(order, items.get(order.id, [])) for order in orders]
