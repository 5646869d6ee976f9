from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, dialect_insert
from models.cartItem import CartItem, CartItemDTO, CartItemWithProductDTO
from models.product import Product, ProductDTO


class CartItemRepository:
    @staticmethod
    async def get_by_cart_id(cart_id: int, session: AsyncSession) -> list[CartItemDTO]:
        stmt = select(CartItem).where(CartItem.cart_id == cart_id).order_by(CartItem.id)
        cart_items = await session_execute(stmt, session)
        return [CartItemDTO.model_validate(cart_item, from_attributes=True)
                for cart_item in cart_items.scalars().all()]

    @staticmethod
    async def get_with_products(cart_id: int, session: AsyncSession) -> list[CartItemWithProductDTO]:
        """
        Load cart lines together with their products in one query.

        The joined product is normalized right here into CartItemWithProductDTO.product
        (ProductDTO or None) so callers never deal with raw join rows.
        """
        stmt = (select(CartItem, Product)
                .outerjoin(Product, Product.id == CartItem.product_id)
                .where(CartItem.cart_id == cart_id)
                .order_by(CartItem.id))
        rows = await session_execute(stmt, session)

        lines = []
        for cart_item, product in rows.all():
            lines.append(CartItemWithProductDTO(
                product_id=cart_item.product_id,
                quantity=cart_item.quantity,
                product=ProductDTO.model_validate(product, from_attributes=True) if product is not None else None
            ))
        return lines

    @staticmethod
    async def get_quantity(cart_id: int, product_id: str, session: AsyncSession) -> int:
        stmt = select(CartItem.quantity).where(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
        quantity = await session_execute(stmt, session)
        return quantity.scalar() or 0

    @staticmethod
    async def upsert(cart_id: int, product_id: str, quantity: int, session: AsyncSession) -> None:
        await CartItemRepository.upsert_many(cart_id, {product_id: quantity}, session)

    @staticmethod
    async def upsert_many(cart_id: int, quantities: dict[str, int], session: AsyncSession) -> None:
        """
        INSERT ... ON CONFLICT (cart_id, product_id) DO UPDATE SET quantity = excluded.quantity.

        Concurrent writers for the same line converge on a single row instead of
        producing duplicates.
        """
        if not quantities:
            return
        rows = [{"cart_id": cart_id, "product_id": product_id, "quantity": quantity}
                for product_id, quantity in quantities.items()]
        stmt = dialect_insert(CartItem.__table__, session).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=['cart_id', 'product_id'],
            set_={"quantity": stmt.excluded.quantity}
        )
        await session_execute(stmt, session)

    @staticmethod
    async def delete(cart_id: int, product_id: str, session: AsyncSession) -> None:
        stmt = delete(CartItem).where(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
        await session_execute(stmt, session)

    @staticmethod
    async def delete_by_cart_id(cart_id: int, session: AsyncSession) -> None:
        stmt = delete(CartItem).where(CartItem.cart_id == cart_id)
        await session_execute(stmt, session)

    @staticmethod
    async def delete_by_product_id(product_id: str, session: AsyncSession) -> None:
        stmt = delete(CartItem).where(CartItem.product_id == product_id)
        await session_execute(stmt, session)
