import logging

from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import session_commit, session_rollback
from models.cartItem import (CartLineResultDTO, GuestCartLineDTO, CartItemDTO, CartItemWithProductDTO,
                             CartSummaryDTO, CartPreviewDTO, CartPreviewItemDTO)
from repositories.cart import CartRepository
from repositories.cartItem import CartItemRepository
from repositories.product import ProductRepository

logger = logging.getLogger(__name__)


def clamp_quantity(requested: int, stock: int) -> int:
    """
    Clamp a requested line quantity into [0, min(MAX_CART_LINE_QUANTITY, stock)].

    Examples:
        clamp_quantity(10, 5) -> 5
        clamp_quantity(150, 500) -> 99
        clamp_quantity(-3, 5) -> 0
    """
    return max(0, min(stock, config.MAX_CART_LINE_QUANTITY, requested))


class CartService:

    @staticmethod
    async def _live_stock(product_id: str, session: AsyncSession) -> int:
        # Missing, draft and soft-deleted products all read as out of stock
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None:
            return 0
        return product.available_stock()

    @staticmethod
    async def add(user_id: str, product_id: str, requested: int, session: AsyncSession) -> CartLineResultDTO:
        """
        Add `requested` units of a product to the user's cart.

        The stored quantity is existing + requested clamped to live stock (and the
        per-line cap). A non-positive request or a clamped result of 0 deletes the
        line instead of storing a zero-quantity row.

        Returns:
            CartLineResultDTO with the stored quantity and the live stock.
        """
        stock = await CartService._live_stock(product_id, session)
        cart = await CartRepository.get_or_create(user_id, session)

        if requested <= 0:
            await CartItemRepository.delete(cart.id, product_id, session)
            await session_commit(session)
            return CartLineResultDTO(quantity=0, stock=stock)

        existing = await CartItemRepository.get_quantity(cart.id, product_id, session)
        next_quantity = clamp_quantity(existing + requested, stock)
        if next_quantity <= 0:
            await CartItemRepository.delete(cart.id, product_id, session)
        else:
            await CartItemRepository.upsert(cart.id, product_id, next_quantity, session)
        await session_commit(session)

        if next_quantity < existing + requested:
            logger.info(f"Cart {cart.id}: product {product_id} clamped to {next_quantity} "
                        f"(requested {existing + requested}, stock {stock})")
        return CartLineResultDTO(quantity=next_quantity, stock=stock)

    @staticmethod
    async def set_quantity(user_id: str, product_id: str, requested: int, session: AsyncSession) -> CartLineResultDTO:
        """Same clamping as add(), but replaces the line quantity."""
        stock = await CartService._live_stock(product_id, session)
        cart = await CartRepository.get_or_create(user_id, session)

        next_quantity = clamp_quantity(requested, stock)
        if next_quantity <= 0:
            await CartItemRepository.delete(cart.id, product_id, session)
        else:
            await CartItemRepository.upsert(cart.id, product_id, next_quantity, session)
        await session_commit(session)
        return CartLineResultDTO(quantity=next_quantity, stock=stock)

    @staticmethod
    async def remove(user_id: str, product_id: str, session: AsyncSession) -> None:
        """Delete a line. Removing from a missing cart or a missing line is a no-op."""
        cart = await CartRepository.get_active(user_id, session)
        if cart is None:
            return
        await CartItemRepository.delete(cart.id, product_id, session)
        await session_commit(session)

    @staticmethod
    async def clear(user_id: str, session: AsyncSession) -> bool:
        """
        Delete every line of the user's active cart.

        Returns:
            False when the user has no active cart.
        """
        cart = await CartRepository.get_active(user_id, session)
        if cart is None:
            return False
        await CartItemRepository.delete_by_cart_id(cart.id, session)
        await session_commit(session)
        return True

    @staticmethod
    async def merge(user_id: str, guest_lines: list[GuestCartLineDTO], session: AsyncSession) -> list[CartItemDTO]:
        """
        Fold a guest cart into the user's durable cart.

        Existing and guest quantities are summed per product, then clamped to live
        stock. Products that are missing, unpublished, soft-deleted or out of stock
        are dropped. The resulting snapshot replaces the cart lines in a single
        transaction (delete all, then upsert keyed on cart+product), so two
        concurrent merges converge instead of double-applying.

        Returns:
            The lines now stored in the cart.
        """
        cart = await CartRepository.get_or_create(user_id, session)
        existing_lines = await CartItemRepository.get_by_cart_id(cart.id, session)

        wanted: dict[str, int] = {}
        for line in existing_lines:
            wanted[line.product_id] = wanted.get(line.product_id, 0) + line.quantity
        for line in guest_lines:
            if not line.product_id or line.quantity <= 0:
                continue
            wanted[line.product_id] = wanted.get(line.product_id, 0) + line.quantity

        products = await ProductRepository.get_by_ids(list(wanted.keys()), session)
        merged: dict[str, int] = {}
        dropped = []
        for product_id, quantity in wanted.items():
            product = products.get(product_id)
            stock = product.available_stock() if product is not None else 0
            next_quantity = clamp_quantity(quantity, stock)
            if next_quantity > 0:
                merged[product_id] = next_quantity
            else:
                dropped.append(product_id)

        try:
            await CartItemRepository.delete_by_cart_id(cart.id, session)
            await CartItemRepository.upsert_many(cart.id, merged, session)
            await session_commit(session)
        except Exception as e:
            logger.error(f"Cart merge failed for user {user_id}, cart {cart.id}: {e}")
            await session_rollback(session)
            raise

        if dropped:
            logger.info(f"Cart merge for user {user_id} dropped {len(dropped)} unavailable product(s): {dropped}")
        return [CartItemDTO(cart_id=cart.id, product_id=product_id, quantity=quantity)
                for product_id, quantity in merged.items()]

    @staticmethod
    async def get_lines_with_products(user_id: str, session: AsyncSession) -> list[CartItemWithProductDTO]:
        """Raw cart lines joined with their products; empty when the user has no cart."""
        cart = await CartRepository.get_active(user_id, session)
        if cart is None:
            return []
        return await CartItemRepository.get_with_products(cart.id, session)

    @staticmethod
    async def get_lines(user_id: str, session: AsyncSession) -> CartSummaryDTO:
        """
        Current cart lines and subtotal.

        Lines whose product became unavailable are reported with quantity 0 and
        contribute nothing to the subtotal; they are not deleted on read.
        """
        lines = await CartService.get_lines_with_products(user_id, session)
        summary = CartSummaryDTO()
        for line in lines:
            quantity = CartService._effective_quantity(line)
            summary.lines.append(CartItemDTO(product_id=line.product_id, quantity=quantity))
            if quantity > 0:
                summary.subtotal += line.product.price_cents * quantity
        return summary

    @staticmethod
    async def get_preview(user_id: str, session: AsyncSession) -> CartPreviewDTO:
        """Cart lines with titles, prices and first image, for the cart drawer."""
        lines = await CartService.get_lines_with_products(user_id, session)
        if not lines:
            return CartPreviewDTO()

        images = await ProductRepository.get_image_urls([line.product_id for line in lines], session)
        preview = CartPreviewDTO()
        for line in lines:
            quantity = CartService._effective_quantity(line)
            product = line.product
            price_cents = product.price_cents if product is not None else 0
            urls = images.get(line.product_id, [])
            preview.items.append(CartPreviewItemDTO(
                product_id=line.product_id,
                title=product.title if product is not None else "(untitled)",
                price_cents=price_cents,
                quantity=quantity,
                image=urls[0] if urls else None
            ))
            preview.subtotal += price_cents * quantity
        return preview

    @staticmethod
    def _effective_quantity(line: CartItemWithProductDTO) -> int:
        if line.product is None:
            return 0
        return clamp_quantity(line.quantity, line.product.available_stock())
