from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute
from models.orderItem import OrderItem, OrderItemDTO


class OrderItemRepository:
    @staticmethod
    async def get_by_order_id(order_id: str, session: AsyncSession) -> list[OrderItemDTO]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
        order_items = await session_execute(stmt, session)
        return [OrderItemDTO.model_validate(order_item, from_attributes=True)
                for order_item in order_items.scalars().all()]

    @staticmethod
    async def get_by_order_ids(order_ids: list[str], session: AsyncSession) -> dict[str, list[OrderItemDTO]]:
        """
        Batch load order lines for multiple orders.

        Returns:
            Dict mapping order_id -> list of OrderItemDTO (empty list when none)
        """
        if not order_ids:
            return {}
        stmt = select(OrderItem).where(OrderItem.order_id.in_(order_ids)).order_by(OrderItem.id)
        order_items = await session_execute(stmt, session)

        items_by_order = {order_id: [] for order_id in order_ids}
        for order_item in order_items.scalars().all():
            items_by_order[order_item.order_id].append(OrderItemDTO.model_validate(order_item, from_attributes=True))
        return items_by_order
