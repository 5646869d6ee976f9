import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush
from enums.order_status import OrderStatus
from models.order import Order, OrderDTO
from models.orderItem import OrderItem, OrderItemDTO

logger = logging.getLogger(__name__)


class OrderRepository:
    @staticmethod
    async def create(order_dto: OrderDTO, order_items: list[OrderItemDTO], session: AsyncSession) -> str:
        """
        Stage an order and its line snapshot in the current transaction.

        Nothing is committed here; the caller commits both together or rolls
        both back.
        """
        order = Order(**order_dto.model_dump(exclude_none=True))
        for order_item_dto in order_items:
            order.items.append(OrderItem(**order_item_dto.model_dump(exclude_none=True, exclude={'order_id'})))
        session.add(order)
        await session_flush(session)
        return order.id

    @staticmethod
    async def get_by_id(order_id: str, session: AsyncSession) -> OrderDTO | None:
        stmt = select(Order).where(Order.id == order_id)
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_all(session: AsyncSession, limit: int = 200) -> list[OrderDTO]:
        stmt = select(Order).order_by(Order.created_at.desc()).limit(limit)
        orders = await session_execute(stmt, session)
        return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]

    @staticmethod
    async def mark_paid_if_pending(order_id: str, paid_at: datetime, session: AsyncSession) -> bool:
        """
        Compare-and-set PENDING -> PAID.

        Returns:
            True if this call performed the transition, False if the order does not
            exist or is no longer pending (already processed by another delivery).
        """
        stmt = (update(Order)
                .where(Order.id == order_id, Order.status == OrderStatus.PENDING)
                .values(status=OrderStatus.PAID, paid_at=paid_at)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1
