from sqlalchemy.ext.asyncio import AsyncSession

import config
from exceptions.product import ProductNotFoundException
from models.product import ProductDTO, CatalogProductDTO
from repositories.category import CategoryRepository
from repositories.product import ProductRepository


class CatalogService:

    @staticmethod
    async def _to_catalog(products: list[ProductDTO], session: AsyncSession) -> list[CatalogProductDTO]:
        product_ids = [product.id for product in products]
        images = await ProductRepository.get_image_urls(product_ids, session)
        categories = await CategoryRepository.get_names_by_product_ids(product_ids, session)
        return [CatalogProductDTO(
            id=product.id,
            title=product.title,
            slug=product.slug,
            description=product.description or "",
            price_cents=product.price_cents or 0,
            stock=product.available_stock(),
            images=images.get(product.id, []),
            categories=categories.get(product.id, [])
        ) for product in products]

    @staticmethod
    async def list_products(session: AsyncSession) -> list[CatalogProductDTO]:
        """Published, not deleted products, newest first."""
        products = await ProductRepository.get_published(session)
        return await CatalogService._to_catalog(products, session)

    @staticmethod
    async def get_product(product_id: str, session: AsyncSession) -> CatalogProductDTO:
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None or not product.is_available():
            raise ProductNotFoundException(product_id)
        catalog = await CatalogService._to_catalog([product], session)
        return catalog[0]

    @staticmethod
    async def get_packages(session: AsyncSession) -> dict[str, ProductDTO]:
        """
        Server-side allow-list of add-on packages.

        Returns:
            Dict mapping product_id -> ProductDTO for every available product linked
            to the package category; empty when that category does not exist.
        """
        category = await CategoryRepository.get_by_name(config.PACKAGE_CATEGORY_NAME, session)
        if category is None:
            return {}
        product_ids = await CategoryRepository.get_product_ids(category.id, session)
        products = await ProductRepository.get_by_ids(product_ids, session)
        return {product_id: product for product_id, product in products.items() if product.is_available()}

    @staticmethod
    async def list_packages(session: AsyncSession) -> list[CatalogProductDTO]:
        packages = await CatalogService.get_packages(session)
        ordered = sorted(packages.values(), key=lambda product: (product.price_cents or 0, product.title or ""))
        return await CatalogService._to_catalog(ordered, session)
