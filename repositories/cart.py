from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, dialect_insert
from enums.cart_status import CartStatus
from models.cart import Cart, CartDTO


class CartRepository:
    @staticmethod
    async def get_active(user_id: str, session: AsyncSession) -> CartDTO | None:
        stmt = select(Cart).where(Cart.user_id == user_id, Cart.status == CartStatus.ACTIVE)
        cart = await session_execute(stmt, session)
        cart = cart.scalar()
        if cart is None:
            return None
        return CartDTO.model_validate(cart, from_attributes=True)

    @staticmethod
    async def get_or_create(user_id: str, session: AsyncSession) -> CartDTO:
        """
        Return the user's active cart, creating it on first use.

        The insert is ON CONFLICT DO NOTHING against the (user_id, status) unique
        index, so two concurrent first mutations end up sharing one cart.
        """
        cart = await CartRepository.get_active(user_id, session)
        if cart is not None:
            return cart

        stmt = dialect_insert(Cart.__table__, session).values(user_id=user_id, status=CartStatus.ACTIVE)
        stmt = stmt.on_conflict_do_nothing(index_elements=['user_id', 'status'])
        await session_execute(stmt, session)
        return await CartRepository.get_active(user_id, session)
