import logging
from datetime import datetime

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush
from enums.product_status import ProductStatus
from models.product import Product, ProductDTO, ProductImage

logger = logging.getLogger(__name__)


class ProductRepository:

    @staticmethod
    async def get_by_id(product_id: str, session: AsyncSession) -> ProductDTO | None:
        stmt = select(Product).where(Product.id == product_id)
        product = await session_execute(stmt, session)
        product = product.scalar()
        if product is None:
            return None
        return ProductDTO.model_validate(product, from_attributes=True)

    @staticmethod
    async def get_by_ids(product_ids: list[str], session: AsyncSession) -> dict[str, ProductDTO]:
        """
        Batch load products for multiple product_ids (eliminates N+1 queries).

        Args:
            product_ids: List of product IDs
            session: Database session

        Returns:
            Dict mapping product_id -> ProductDTO; missing ids are simply absent
        """
        if not product_ids:
            return {}

        stmt = select(Product).where(Product.id.in_(product_ids))
        result = await session_execute(stmt, session)
        products = result.scalars().all()

        return {product.id: ProductDTO.model_validate(product, from_attributes=True) for product in products}

    @staticmethod
    async def get_published(session: AsyncSession) -> list[ProductDTO]:
        stmt = (select(Product)
                .where(Product.status == ProductStatus.PUBLISHED,
                       Product.deleted_at == None)
                .order_by(Product.created_at.desc(), Product.title))
        products = await session_execute(stmt, session)
        return [ProductDTO.model_validate(product, from_attributes=True) for product in products.scalars().all()]

    @staticmethod
    async def get_image_urls(product_ids: list[str], session: AsyncSession) -> dict[str, list[str]]:
        """
        Batch load image URLs ordered by their sort key.

        Returns:
            Dict mapping product_id -> list of URLs (empty list when the product has none)
        """
        if not product_ids:
            return {}

        stmt = (select(ProductImage.product_id, ProductImage.url)
                .where(ProductImage.product_id.in_(product_ids))
                .order_by(ProductImage.sort.asc(), ProductImage.id.asc()))
        rows = await session_execute(stmt, session)

        urls = {product_id: [] for product_id in product_ids}
        for product_id, url in rows.all():
            urls[product_id].append(url)
        return urls

    @staticmethod
    async def get_slugs_starting_with(prefix: str, session: AsyncSession) -> set[str]:
        stmt = select(Product.slug).where(Product.slug.like(f"{prefix}%"))
        slugs = await session_execute(stmt, session)
        return set(slugs.scalars().all())

    @staticmethod
    async def create(product_dto: ProductDTO, session: AsyncSession) -> str:
        product = Product(**product_dto.model_dump(exclude_none=True))
        session.add(product)
        await session_flush(session)
        return product.id

    @staticmethod
    async def add_images(product_id: str, urls: list[str], session: AsyncSession, start_sort: int = 0) -> None:
        for offset, url in enumerate(urls):
            session.add(ProductImage(product_id=product_id, url=url, sort=start_sort + offset))
        await session_flush(session)

    @staticmethod
    async def update(product_id: str, values: dict, session: AsyncSession) -> bool:
        if not values:
            return await ProductRepository.get_by_id(product_id, session) is not None
        stmt = (update(Product)
                .where(Product.id == product_id)
                .values(**values)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount > 0

    @staticmethod
    async def soft_delete(product_id: str, deleted_by: str, reason: str | None, session: AsyncSession) -> bool:
        return await ProductRepository.update(product_id, {
            "deleted_at": datetime.now(),
            "deleted_by": deleted_by,
            "deleted_reason": reason,
        }, session)

    @staticmethod
    async def hard_delete(product_id: str, session: AsyncSession) -> bool:
        await session_execute(delete(ProductImage).where(ProductImage.product_id == product_id), session)
        result = await session_execute(delete(Product).where(Product.id == product_id), session)
        return result.rowcount > 0

    @staticmethod
    async def decrement_stock(product_id: str, quantity: int, session: AsyncSession) -> bool:
        """
        Atomically take `quantity` units out of stock.

        Single conditional UPDATE evaluated by the database, so concurrent
        decrements of the same product never lose updates.

        Returns:
            True if the row was decremented, False if the product is missing
            or has fewer than `quantity` units left.
        """
        stmt = (update(Product)
                .where(Product.id == product_id, Product.stock >= quantity)
                .values(stock=Product.stock - quantity)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def decrement_stock_clamped(product_id: str, quantity: int, session: AsyncSession) -> int | None:
        """
        Degraded read-modify-write decrement, clamped at zero.

        Only used when decrement_stock() could not apply the decrement.

        Returns:
            New stock value, or None if the product does not exist.
        """
        stmt = select(Product.stock).where(Product.id == product_id)
        stock = await session_execute(stmt, session)
        stock = stock.scalar()
        if stock is None:
            return None

        next_stock = max(0, stock - quantity)
        await ProductRepository.update(product_id, {"stock": next_stock}, session)
        return next_stock
