from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush, dialect_insert
from models.category import Category, CategoryDTO, ProductCategory


class CategoryRepository:
    @staticmethod
    async def get_by_name(name: str, session: AsyncSession) -> CategoryDTO | None:
        """Case-insensitive lookup."""
        stmt = select(Category).where(func.lower(Category.name) == name.strip().lower())
        category = await session_execute(stmt, session)
        category = category.scalar()
        if category is None:
            return None
        return CategoryDTO.model_validate(category, from_attributes=True)

    @staticmethod
    async def create(category_dto: CategoryDTO, session: AsyncSession) -> int:
        category = Category(**category_dto.model_dump(exclude_none=True))
        session.add(category)
        await session_flush(session)
        return category.id

    @staticmethod
    async def get_product_ids(category_id: int, session: AsyncSession) -> list[str]:
        stmt = select(ProductCategory.product_id).where(ProductCategory.category_id == category_id)
        product_ids = await session_execute(stmt, session)
        # Deduplicated, insertion order preserved
        return list(dict.fromkeys(product_ids.scalars().all()))

    @staticmethod
    async def get_names_by_product_ids(product_ids: list[str], session: AsyncSession) -> dict[str, list[str]]:
        """
        Batch load category names for multiple products (prevents N+1 queries).

        Returns:
            Dict mapping product_id -> list of category names (empty list when none)
        """
        if not product_ids:
            return {}

        stmt = (select(ProductCategory.product_id, Category.name)
                .join(Category, Category.id == ProductCategory.category_id)
                .where(ProductCategory.product_id.in_(product_ids))
                .order_by(Category.name))
        rows = await session_execute(stmt, session)

        names = {product_id: [] for product_id in product_ids}
        for product_id, name in rows.all():
            names[product_id].append(name)
        return names

    @staticmethod
    async def add_links(product_id: str, category_ids: list[int], session: AsyncSession) -> None:
        if not category_ids:
            return
        rows = [{"product_id": product_id, "category_id": category_id}
                for category_id in dict.fromkeys(category_ids)]
        # Re-adding an existing link is a no-op
        stmt = dialect_insert(ProductCategory.__table__, session).values(rows).on_conflict_do_nothing()
        await session_execute(stmt, session)

    @staticmethod
    async def remove_links(product_id: str, category_ids: list[int], session: AsyncSession) -> None:
        stmt = delete(ProductCategory).where(ProductCategory.product_id == product_id,
                                             ProductCategory.category_id.in_(category_ids))
        await session_execute(stmt, session)

    @staticmethod
    async def delete_by_product_id(product_id: str, session: AsyncSession) -> None:
        stmt = delete(ProductCategory).where(ProductCategory.product_id == product_id)
        await session_execute(stmt, session)
