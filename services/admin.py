import logging
import re

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_commit, session_rollback
from enums.product_status import ProductStatus
from exceptions.product import ProductNotFoundException, InvalidProductDataException
from models.order import OrderDTO
from models.orderItem import OrderItemDTO
from models.product import ProductDTO, ProductCreateRequestDTO, ProductUpdateRequestDTO
from repositories.cartItem import CartItemRepository
from repositories.category import CategoryRepository
from repositories.product import ProductRepository
from services.order import OrderService

logger = logging.getLogger(__name__)

MAX_SLUG_SUFFIX = 200


def base_slug_from_title(title: str) -> str:
    """
    Examples:
        "Blue Sapphire Ring" -> "blue-sapphire-ring"
        "  Rubies & Pearls!! " -> "rubies-pearls"
    """
    return re.sub(r"[^a-z0-9]+", "-", title.lower().strip()).strip("-")


class AdminService:

    @staticmethod
    async def unique_slug(title: str, session: AsyncSession) -> str:
        """Slug derived from the title, suffixed with -2, -3, ... until unused."""
        base_slug = base_slug_from_title(title) or "product"
        taken = await ProductRepository.get_slugs_starting_with(base_slug, session)
        if base_slug not in taken:
            return base_slug
        for i in range(2, MAX_SLUG_SUFFIX):
            candidate = f"{base_slug}-{i}"
            if candidate not in taken:
                return candidate
        raise InvalidProductDataException(f"No free slug for '{base_slug}'")

    @staticmethod
    async def create_product(request: ProductCreateRequestDTO, session: AsyncSession) -> str:
        """
        Create a product with its category links and image rows.

        Price and stock are clamped to >= 0; any status other than "draft" publishes.

        Raises:
            InvalidProductDataException: missing title or rejected by the database
        """
        title = request.title.strip()
        if not title:
            raise InvalidProductDataException("Title is required")

        product_dto = ProductDTO(
            title=title,
            slug=await AdminService.unique_slug(title, session),
            description=request.description or "",
            price_cents=max(0, request.price_cents),
            stock=max(0, request.stock),
            status=ProductStatus.from_string(request.status)
        )
        try:
            product_id = await ProductRepository.create(product_dto, session)
            await CategoryRepository.add_links(product_id, request.category_ids, session)
            await ProductRepository.add_images(product_id, request.image_urls, session)
            await session_commit(session)
        except IntegrityError as e:
            await session_rollback(session)
            raise InvalidProductDataException(f"Product rejected: {e.orig}")

        logger.info(f"Product {product_id} '{title}' created ({product_dto.status.value})")
        return product_id

    @staticmethod
    async def update_product(product_id: str, request: ProductUpdateRequestDTO, session: AsyncSession) -> None:
        """
        Raises:
            ProductNotFoundException: unknown product id
            InvalidProductDataException: blank title or rejected by the database
        """
        values = request.model_dump(include={"title", "description", "price_cents", "stock"}, exclude_none=True)
        if "title" in values:
            values["title"] = values["title"].strip()
            if not values["title"]:
                raise InvalidProductDataException("Title is required", product_id)
        if "price_cents" in values:
            values["price_cents"] = max(0, values["price_cents"])
        if "stock" in values:
            values["stock"] = max(0, values["stock"])
        if request.status is not None:
            values["status"] = ProductStatus.from_string(request.status)

        try:
            if not await ProductRepository.update(product_id, values, session):
                raise ProductNotFoundException(product_id)
            if request.remove_category_ids:
                await CategoryRepository.remove_links(product_id, request.remove_category_ids, session)
            await CategoryRepository.add_links(product_id, request.add_category_ids, session)
            if request.image_urls:
                existing = await ProductRepository.get_image_urls([product_id], session)
                await ProductRepository.add_images(product_id, request.image_urls, session,
                                                   start_sort=len(existing.get(product_id, [])))
            await session_commit(session)
        except IntegrityError as e:
            await session_rollback(session)
            raise InvalidProductDataException(f"Product rejected: {e.orig}", product_id)
        except ProductNotFoundException:
            await session_rollback(session)
            raise

        logger.info(f"Product {product_id} updated: {sorted(values.keys())}")

    @staticmethod
    async def delete_product(product_id: str, admin_user_id: str, hard: bool, reason: str | None,
                             session: AsyncSession) -> None:
        """
        Soft delete (default) keeps the row and hides it from the storefront.
        Hard delete removes images, category links and cart lines, then the product;
        order history keeps its snapshot lines.

        Raises:
            ProductNotFoundException: unknown product id
        """
        if not hard:
            if not await ProductRepository.soft_delete(product_id, admin_user_id, reason, session):
                raise ProductNotFoundException(product_id)
            await session_commit(session)
            logger.info(f"Product {product_id} soft-deleted by {admin_user_id}")
            return

        await CategoryRepository.delete_by_product_id(product_id, session)
        await CartItemRepository.delete_by_product_id(product_id, session)
        if not await ProductRepository.hard_delete(product_id, session):
            await session_rollback(session)
            raise ProductNotFoundException(product_id)
        await session_commit(session)
        logger.info(f"Product {product_id} hard-deleted by {admin_user_id}")

    @staticmethod
    async def list_orders(session: AsyncSession) -> list[tuple[OrderDTO, list[OrderItemDTO]]]:
        return await OrderService.list_with_items(session)
