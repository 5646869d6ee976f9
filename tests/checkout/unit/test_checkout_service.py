"""
Unit Tests: CheckoutService

Tests for services/checkout.py covering:
- validate_contact() phone/city/address/delivery-payment rules
- initiate() order creation, snapshot pricing and payment hand-off
- package selection rules
- request_order() e-mail then clear
"""

import pytest
from unittest.mock import AsyncMock, patch
from sqlalchemy import select, func

from enums.delivery_payment import DeliveryPayment
from enums.order_status import OrderStatus
from exceptions.cart import EmptyCartException
from exceptions.checkout import CheckoutValidationException, InvalidPackageSelectionException
from exceptions.notification import EmailDeliveryException
from exceptions.payment import PaymentInitializationException
from models.category import Category, ProductCategory
from models.checkout import CheckoutRequestDTO, PackageSelectionDTO
from models.order import Order
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository
from repositories.product import ProductRepository
from services.cart import CartService
from services.checkout import CheckoutService

PAYMENT_URL = "https://checkout.paystack.test/abc"


def contact(**overrides) -> CheckoutRequestDTO:
    fields = {"phone": "+233241234567", "city": "Accra", "address": "12 Ring Road", "deliveryPayment": "before"}
    fields.update(overrides)
    return CheckoutRequestDTO(**fields)


async def order_count(session) -> int:
    count = await session.execute(select(func.count()).select_from(Order))
    return count.scalar()


class TestValidateContact:

    @pytest.mark.parametrize("phone", ["+233241234567", "0241234567", "  0241234567  "])
    def test_valid_phones(self, phone):
        details = CheckoutService.validate_contact(contact(phone=phone))
        assert details.phone == phone.strip()

    @pytest.mark.parametrize("phone", ["12345", "+2332412345678", "241234567", "+44241234567", ""])
    def test_invalid_phones(self, phone):
        with pytest.raises(CheckoutValidationException) as exc_info:
            CheckoutService.validate_contact(contact(phone=phone))
        assert set(exc_info.value.fields) == {"phone"}

    def test_reports_every_invalid_field(self):
        with pytest.raises(CheckoutValidationException) as exc_info:
            CheckoutService.validate_contact(contact(phone="1", city="A", address="x", deliveryPayment="later"))
        assert set(exc_info.value.fields) == {"phone", "city", "address", "deliveryPayment"}

    def test_delivery_payment_defaults_to_before(self):
        details = CheckoutService.validate_contact(contact(deliveryPayment=None))
        assert details.delivery_payment == DeliveryPayment.BEFORE

    def test_delivery_payment_after(self):
        details = CheckoutService.validate_contact(contact(deliveryPayment="after"))
        assert details.delivery_payment == DeliveryPayment.AFTER


class TestInitiate:

    @pytest.mark.asyncio
    async def test_creates_pending_order_and_returns_url(self, test_session, test_user, product_factory):
        ring = await product_factory("Ruby Ring", price_cents=12000, stock=5)
        chain = await product_factory("Gold Chain", price_cents=3050, stock=5)
        await CartService.add(test_user.id, ring, 2, test_session)
        await CartService.add(test_user.id, chain, 1, test_session)

        with patch('services.payment.PaymentService.initialize_transaction', new_callable=AsyncMock,
                   return_value=PAYMENT_URL) as mock_init:
            result = await CheckoutService.initiate(test_user, contact(), test_session)

        assert result.url == PAYMENT_URL
        assert result.amount_cents == 2 * 12000 + 3050

        order = await OrderRepository.get_by_id(result.order_id, test_session)
        assert order.status == OrderStatus.PENDING
        assert order.amount_cents == 27050
        assert order.phone == "+233241234567"
        assert order.delivery_payment == DeliveryPayment.BEFORE

        payment_dto = mock_init.call_args.args[0]
        assert payment_dto.reference == result.order_id
        assert payment_dto.amount == 27050
        assert payment_dto.currency == "GHS"
        assert payment_dto.email == test_user.email
        assert payment_dto.callback_url == "https://shop.test/api/payment/callback"

    @pytest.mark.asyncio
    async def test_invalid_phone_creates_no_order(self, test_session, test_user, product_factory):
        ring = await product_factory("Ruby Ring", stock=5)
        await CartService.add(test_user.id, ring, 1, test_session)

        with patch('services.payment.PaymentService.initialize_transaction', new_callable=AsyncMock) as mock_init:
            with pytest.raises(CheckoutValidationException) as exc_info:
                await CheckoutService.initiate(test_user, contact(phone="12345"), test_session)

        assert "phone" in exc_info.value.fields
        assert await order_count(test_session) == 0
        mock_init.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_cart(self, test_session, test_user):
        with pytest.raises(EmptyCartException):
            await CheckoutService.initiate(test_user, contact(), test_session)
        assert await order_count(test_session) == 0

    @pytest.mark.asyncio
    async def test_only_unavailable_lines_counts_as_empty(self, test_session, test_user, product_factory):
        ring = await product_factory("Ruby Ring", stock=5)
        await CartService.add(test_user.id, ring, 1, test_session)
        await ProductRepository.soft_delete(ring, "admin", "discontinued", test_session)
        await test_session.commit()
        test_session.expire_all()

        with pytest.raises(EmptyCartException):
            await CheckoutService.initiate(test_user, contact(), test_session)

    @pytest.mark.asyncio
    async def test_sold_out_lines_count_as_empty(self, test_session, test_user, product_factory):
        ring = await product_factory("Ruby Ring", stock=5)
        await CartService.add(test_user.id, ring, 3, test_session)
        await ProductRepository.update(ring, {"stock": 0}, test_session)
        await test_session.commit()
        test_session.expire_all()

        with pytest.raises(EmptyCartException):
            await CheckoutService.initiate(test_user, contact(), test_session)
        assert await order_count(test_session) == 0

    @pytest.mark.asyncio
    async def test_order_lines_are_clamped_to_live_stock(self, test_session, test_user, product_factory):
        ring = await product_factory("Ruby Ring", price_cents=1000, stock=5)
        await CartService.add(test_user.id, ring, 4, test_session)
        await ProductRepository.update(ring, {"stock": 2}, test_session)
        await test_session.commit()
        test_session.expire_all()
        cart_lines = await CartService.get_lines_with_products(test_user.id, test_session)

        items = CheckoutService.build_order_items(cart_lines)

        assert [(item.product_id, item.quantity, item.line_total_cents) for item in items] == [(ring, 2, 2000)]

    @pytest.mark.asyncio
    async def test_free_cart_is_rejected(self, test_session, test_user, product_factory):
        freebie = await product_factory("Sample Bead", price_cents=0, stock=5)
        await CartService.add(test_user.id, freebie, 1, test_session)

        with pytest.raises(EmptyCartException):
            await CheckoutService.initiate(test_user, contact(), test_session)
        assert await order_count(test_session) == 0

    @pytest.mark.asyncio
    async def test_snapshot_survives_price_change(self, test_session, test_user, product_factory):
        ring = await product_factory("Ruby Ring", price_cents=10000, stock=5)
        await CartService.add(test_user.id, ring, 2, test_session)

        with patch('services.payment.PaymentService.initialize_transaction', new_callable=AsyncMock,
                   return_value=PAYMENT_URL):
            result = await CheckoutService.initiate(test_user, contact(), test_session)

        await ProductRepository.update(ring, {"price_cents": 99900}, test_session)
        await test_session.commit()

        order = await OrderRepository.get_by_id(result.order_id, test_session)
        items = await OrderItemRepository.get_by_order_id(result.order_id, test_session)
        assert [(item.unit_price_cents, item.quantity, item.line_total_cents) for item in items] == [(10000, 2, 20000)]
        assert order.amount_cents == sum(item.line_total_cents for item in items)

    @pytest.mark.asyncio
    async def test_payment_failure_leaves_order_pending(self, test_session, test_user, product_factory):
        ring = await product_factory("Ruby Ring", price_cents=5000, stock=5)
        await CartService.add(test_user.id, ring, 1, test_session)

        with patch('services.payment.PaymentService.initialize_transaction', new_callable=AsyncMock,
                   side_effect=PaymentInitializationException("ignored", "Payment init failed")):
            with pytest.raises(PaymentInitializationException):
                await CheckoutService.initiate(test_user, contact(), test_session)

        orders = (await test_session.execute(select(Order.status))).scalars().all()
        assert orders == [OrderStatus.PENDING]

    @pytest.mark.asyncio
    async def test_user_without_email_gets_placeholder(self, test_session, product_factory):
        from models.user import User, UserDTO

        user = User(id="user-no-mail", email=None, full_name=None)
        test_session.add(user)
        await test_session.commit()
        ring = await product_factory("Ruby Ring", stock=5)
        await CartService.add(user.id, ring, 1, test_session)

        with patch('services.payment.PaymentService.initialize_transaction', new_callable=AsyncMock,
                   return_value=PAYMENT_URL) as mock_init:
            await CheckoutService.initiate(UserDTO(id=user.id), contact(), test_session)

        assert mock_init.call_args.args[0].email == "customer@example.com"


class TestPackages:

    @pytest.fixture
    def package_factory(self, test_session, product_factory):
        async def create(title: str, price_cents: int = 500, stock: int = 10) -> str:
            category = (await test_session.execute(select(Category).where(Category.name == "package"))).scalar()
            if category is None:
                category = Category(name="package")
                test_session.add(category)
                await test_session.flush()
            package_id = await product_factory(title, price_cents=price_cents, stock=stock)
            test_session.add(ProductCategory(product_id=package_id, category_id=category.id))
            await test_session.commit()
            return package_id

        return create

    @pytest.mark.asyncio
    async def test_package_lines_are_priced(self, test_session, test_user, product_factory, package_factory):
        ring = await product_factory("Ruby Ring", price_cents=10000, stock=5)
        gift_box = await package_factory("Gift Box", price_cents=800)
        await CartService.add(test_user.id, ring, 2, test_session)

        request = contact(packages=[PackageSelectionDTO(productId=ring, packageId=gift_box, quantity=2)])
        with patch('services.payment.PaymentService.initialize_transaction', new_callable=AsyncMock,
                   return_value=PAYMENT_URL):
            result = await CheckoutService.initiate(test_user, request, test_session)

        assert result.amount_cents == 20000 + 1600
        items = await OrderItemRepository.get_by_order_id(result.order_id, test_session)
        package_line = [item for item in items if item.parent_product_id == ring][0]
        assert package_line.product_id == gift_box
        assert package_line.title == "Gift Box (for Ruby Ring)"
        assert package_line.line_total_cents == 1600

    @pytest.mark.asyncio
    async def test_more_packages_than_units_is_rejected(self, test_session, test_user, product_factory,
                                                        package_factory):
        ring = await product_factory("Ruby Ring", stock=5)
        gift_box = await package_factory("Gift Box")
        await CartService.add(test_user.id, ring, 2, test_session)

        request = contact(packages=[PackageSelectionDTO(productId=ring, packageId=gift_box, quantity=3)])
        with pytest.raises(InvalidPackageSelectionException):
            await CheckoutService.initiate(test_user, request, test_session)
        assert await order_count(test_session) == 0

    @pytest.mark.asyncio
    async def test_split_selections_are_summed_per_line(self, test_session, test_user, product_factory,
                                                        package_factory):
        ring = await product_factory("Ruby Ring", stock=5)
        gift_box = await package_factory("Gift Box")
        pouch = await package_factory("Velvet Pouch")
        await CartService.add(test_user.id, ring, 2, test_session)

        request = contact(packages=[
            PackageSelectionDTO(productId=ring, packageId=gift_box, quantity=2),
            PackageSelectionDTO(productId=ring, packageId=pouch, quantity=1),
        ])
        with pytest.raises(InvalidPackageSelectionException):
            await CheckoutService.initiate(test_user, request, test_session)

    @pytest.mark.asyncio
    async def test_unknown_package_is_rejected(self, test_session, test_user, product_factory, package_factory):
        ring = await product_factory("Ruby Ring", stock=5)
        not_a_package = await product_factory("Sapphire", stock=5)
        await package_factory("Gift Box")
        await CartService.add(test_user.id, ring, 1, test_session)

        request = contact(packages=[PackageSelectionDTO(productId=ring, packageId=not_a_package)])
        with pytest.raises(InvalidPackageSelectionException):
            await CheckoutService.initiate(test_user, request, test_session)

    @pytest.mark.asyncio
    async def test_package_for_product_not_in_cart(self, test_session, test_user, product_factory,
                                                   package_factory):
        ring = await product_factory("Ruby Ring", stock=5)
        other = await product_factory("Opal Pendant", stock=5)
        gift_box = await package_factory("Gift Box")
        await CartService.add(test_user.id, ring, 1, test_session)

        request = contact(packages=[PackageSelectionDTO(productId=other, packageId=gift_box)])
        with pytest.raises(InvalidPackageSelectionException):
            await CheckoutService.initiate(test_user, request, test_session)

    @pytest.mark.asyncio
    async def test_package_stock_is_enforced(self, test_session, test_user, product_factory, package_factory):
        ring = await product_factory("Ruby Ring", stock=5)
        gift_box = await package_factory("Gift Box", stock=1)
        await CartService.add(test_user.id, ring, 3, test_session)

        request = contact(packages=[PackageSelectionDTO(productId=ring, packageId=gift_box, quantity=2)])
        with pytest.raises(InvalidPackageSelectionException):
            await CheckoutService.initiate(test_user, request, test_session)

    @pytest.mark.asyncio
    async def test_package_stock_counts_regular_lines(self, test_session, test_user, product_factory,
                                                      package_factory):
        ring = await product_factory("Ruby Ring", stock=5)
        gift_box = await package_factory("Gift Box", stock=2)
        await CartService.add(test_user.id, ring, 2, test_session)
        await CartService.add(test_user.id, gift_box, 2, test_session)

        request = contact(packages=[PackageSelectionDTO(productId=ring, packageId=gift_box, quantity=2)])
        with pytest.raises(InvalidPackageSelectionException):
            await CheckoutService.initiate(test_user, request, test_session)
        assert await order_count(test_session) == 0

    @pytest.mark.asyncio
    async def test_zero_quantity_selection_is_rejected(self, test_session, test_user, product_factory,
                                                       package_factory):
        ring = await product_factory("Ruby Ring", stock=5)
        gift_box = await package_factory("Gift Box")
        await CartService.add(test_user.id, ring, 1, test_session)

        request = contact(packages=[PackageSelectionDTO(productId=ring, packageId=gift_box, quantity=0)])
        with pytest.raises(InvalidPackageSelectionException):
            await CheckoutService.initiate(test_user, request, test_session)


class TestRequestOrder:

    @pytest.mark.asyncio
    async def test_sends_email_then_clears_cart(self, test_session, test_user, product_factory):
        ring = await product_factory("Ruby Ring", price_cents=5000, stock=5)
        await CartService.add(test_user.id, ring, 2, test_session)

        with patch('services.notification.NotificationService.send_email', new_callable=AsyncMock) as mock_send:
            await CheckoutService.request_order(test_user, "0241234567", "Kumasi", test_session)

        mock_send.assert_awaited_once()
        assert "Ruby Ring" in mock_send.call_args.kwargs["html"]
        summary = await CartService.get_lines(test_user.id, test_session)
        assert summary.lines == []

    @pytest.mark.asyncio
    async def test_missing_city(self, test_session, test_user):
        with pytest.raises(CheckoutValidationException):
            await CheckoutService.request_order(test_user, "0241234567", "  ", test_session)

    @pytest.mark.asyncio
    async def test_empty_cart(self, test_session, test_user):
        with pytest.raises(EmptyCartException):
            await CheckoutService.request_order(test_user, "0241234567", "Kumasi", test_session)

    @pytest.mark.asyncio
    async def test_email_failure_keeps_cart(self, test_session, test_user, product_factory):
        ring = await product_factory("Ruby Ring", stock=5)
        await CartService.add(test_user.id, ring, 1, test_session)

        with patch('services.notification.NotificationService.send_email', new_callable=AsyncMock,
                   side_effect=EmailDeliveryException("Order request", "timed out")):
            with pytest.raises(EmailDeliveryException):
                await CheckoutService.request_order(test_user, "0241234567", "Kumasi", test_session)

        summary = await CartService.get_lines(test_user.id, test_session)
        assert [(line.product_id, line.quantity) for line in summary.lines] == [(ring, 1)]
