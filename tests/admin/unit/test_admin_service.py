"""
Unit Tests: AdminService

Product create/update/delete through the repositories on an in-memory database.
"""

import pytest
from sqlalchemy import select

from enums.product_status import ProductStatus
from exceptions.product import ProductNotFoundException, InvalidProductDataException
from models.cartItem import CartItem
from models.category import Category, ProductCategory
from models.product import Product, ProductCreateRequestDTO, ProductUpdateRequestDTO
from repositories.product import ProductRepository
from services.admin import AdminService, base_slug_from_title
from services.cart import CartService
from services.catalog import CatalogService


class TestSlugs:

    @pytest.mark.parametrize("title,expected", [
        ("Blue Sapphire Ring", "blue-sapphire-ring"),
        ("  Rubies & Pearls!! ", "rubies-pearls"),
        ("Émeraude 18k", "meraude-18k"),
        ("!!!", ""),
    ])
    def test_base_slug(self, title, expected):
        assert base_slug_from_title(title) == expected

    @pytest.mark.asyncio
    async def test_duplicate_titles_get_suffixes(self, test_session):
        first = await AdminService.create_product(ProductCreateRequestDTO(title="Ruby Ring"), test_session)
        second = await AdminService.create_product(ProductCreateRequestDTO(title="Ruby Ring"), test_session)
        third = await AdminService.create_product(ProductCreateRequestDTO(title="Ruby Ring"), test_session)

        slugs = (await test_session.execute(
            select(Product.id, Product.slug).where(Product.id.in_([first, second, third])))).all()
        assert {slug for _, slug in slugs} == {"ruby-ring", "ruby-ring-2", "ruby-ring-3"}

    @pytest.mark.asyncio
    async def test_symbol_only_title_falls_back(self, test_session):
        slug = await AdminService.unique_slug("???", test_session)
        assert slug == "product"


class TestCreateProduct:

    @pytest.mark.asyncio
    async def test_create_with_categories_and_images(self, test_session):
        category = Category(name="rings")
        test_session.add(category)
        await test_session.commit()

        product_id = await AdminService.create_product(ProductCreateRequestDTO(
            title="  Ruby Ring ",
            price_cents=-50,
            stock=-1,
            status="DRAFT",
            category_ids=[category.id, category.id],
            image_urls=["https://img.test/a.jpg", "https://img.test/b.jpg"]
        ), test_session)

        product = await ProductRepository.get_by_id(product_id, test_session)
        assert product.title == "Ruby Ring"
        assert (product.price_cents, product.stock) == (0, 0)
        assert product.status == ProductStatus.DRAFT
        images = await ProductRepository.get_image_urls([product_id], test_session)
        assert images[product_id] == ["https://img.test/a.jpg", "https://img.test/b.jpg"]
        links = (await test_session.execute(select(ProductCategory))).scalars().all()
        assert len(links) == 1

    @pytest.mark.asyncio
    async def test_unknown_status_publishes(self, test_session):
        product_id = await AdminService.create_product(ProductCreateRequestDTO(title="Opal", status="live"),
                                                       test_session)
        product = await ProductRepository.get_by_id(product_id, test_session)
        assert product.status == ProductStatus.PUBLISHED

    @pytest.mark.asyncio
    async def test_title_required(self, test_session):
        with pytest.raises(InvalidProductDataException):
            await AdminService.create_product(ProductCreateRequestDTO(title="   "), test_session)

    @pytest.mark.asyncio
    async def test_unknown_category_is_rejected(self, test_session):
        with pytest.raises(InvalidProductDataException):
            await AdminService.create_product(ProductCreateRequestDTO(title="Opal", category_ids=[999]),
                                              test_session)
        assert (await test_session.execute(select(Product))).scalars().all() == []


class TestUpdateProduct:

    @pytest.mark.asyncio
    async def test_partial_update(self, test_session, product_factory):
        product_id = await product_factory("Opal", price_cents=1000, stock=2)
        rings = Category(name="rings")
        gifts = Category(name="gifts")
        test_session.add_all([rings, gifts])
        await test_session.flush()
        test_session.add(ProductCategory(product_id=product_id, category_id=rings.id))
        await test_session.commit()

        await AdminService.update_product(product_id, ProductUpdateRequestDTO(
            stock=7,
            addCategoryIds=[gifts.id],
            removeCategoryIds=[rings.id],
            image_urls=["https://img.test/new.jpg"]
        ), test_session)
        test_session.expire_all()

        product = await ProductRepository.get_by_id(product_id, test_session)
        assert (product.title, product.price_cents, product.stock) == ("Opal", 1000, 7)
        catalog = await CatalogService.get_product(product_id, test_session)
        assert catalog.categories == ["gifts"]
        assert catalog.images == ["https://img.test/new.jpg"]

    @pytest.mark.asyncio
    async def test_unknown_product(self, test_session):
        with pytest.raises(ProductNotFoundException):
            await AdminService.update_product("nope", ProductUpdateRequestDTO(stock=1), test_session)

    @pytest.mark.asyncio
    async def test_blank_title(self, test_session, product_factory):
        product_id = await product_factory("Opal")
        with pytest.raises(InvalidProductDataException):
            await AdminService.update_product(product_id, ProductUpdateRequestDTO(title=" "), test_session)


class TestDeleteProduct:

    @pytest.mark.asyncio
    async def test_soft_delete_hides_product(self, test_session, test_user, product_factory):
        product_id = await product_factory("Opal", stock=5)
        await CartService.add(test_user.id, product_id, 2, test_session)

        await AdminService.delete_product(product_id, "admin-1", False, "discontinued", test_session)
        test_session.expire_all()

        product = await ProductRepository.get_by_id(product_id, test_session)
        assert product.deleted_at is not None
        assert product.deleted_by == "admin-1"
        assert product.deleted_reason == "discontinued"
        with pytest.raises(ProductNotFoundException):
            await CatalogService.get_product(product_id, test_session)
        summary = await CartService.get_lines(test_user.id, test_session)
        assert [(line.product_id, line.quantity) for line in summary.lines] == [(product_id, 0)]

    @pytest.mark.asyncio
    async def test_hard_delete_removes_cart_lines(self, test_session, test_user, product_factory):
        product_id = await product_factory("Opal", stock=5)
        await CartService.add(test_user.id, product_id, 2, test_session)

        await AdminService.delete_product(product_id, "admin-1", True, None, test_session)

        assert await ProductRepository.get_by_ids([product_id], test_session) == {}
        assert (await test_session.execute(select(CartItem))).scalars().all() == []

    @pytest.mark.parametrize("hard", [False, True])
    @pytest.mark.asyncio
    async def test_unknown_product(self, test_session, hard):
        with pytest.raises(ProductNotFoundException):
            await AdminService.delete_product("nope", "admin-1", hard, None, test_session)
