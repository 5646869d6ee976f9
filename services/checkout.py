import logging
import re

from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import session_commit, session_rollback
from enums.delivery_payment import DeliveryPayment
from enums.order_status import OrderStatus
from exceptions.cart import EmptyCartException
from exceptions.checkout import CheckoutValidationException, InvalidPackageSelectionException
from models.cartItem import CartItemWithProductDTO
from models.checkout import CheckoutRequestDTO, CheckoutResultDTO, PackageSelectionDTO
from models.order import OrderDTO
from models.orderItem import OrderItemDTO
from models.payment import PaymentInitializationDTO
from models.user import UserDTO
from repositories.order import OrderRepository
from services.cart import CartService, clamp_quantity
from services.catalog import CatalogService
from services.notification import NotificationService
from services.payment import PaymentService

logger = logging.getLogger(__name__)

# Ghanaian numbers only: +233 followed by 9 digits, or a leading 0 and 9 digits
PHONE_PATTERN = re.compile(r"^(\+233\d{9}|0\d{9})$")
MIN_CITY_LENGTH = 2
MIN_ADDRESS_LENGTH = 3


class ContactDetails:
    def __init__(self, phone: str, city: str, address: str, delivery_payment: DeliveryPayment):
        self.phone = phone
        self.city = city
        self.address = address
        self.delivery_payment = delivery_payment


class CheckoutService:

    @staticmethod
    def validate_contact(request: CheckoutRequestDTO) -> ContactDetails:
        """
        Validate every contact field and report all failures together.

        Raises:
            CheckoutValidationException: with a {field: reason} map
        """
        phone = (request.phone or "").strip()
        city = (request.city or "").strip()
        address = (request.address or "").strip()
        errors = {}

        if not PHONE_PATTERN.match(phone):
            errors["phone"] = "Phone must be +233XXXXXXXXX or 0XXXXXXXXX"
        if len(city) < MIN_CITY_LENGTH:
            errors["city"] = f"City must be at least {MIN_CITY_LENGTH} characters"
        if len(address) < MIN_ADDRESS_LENGTH:
            errors["address"] = f"Address must be at least {MIN_ADDRESS_LENGTH} characters"

        delivery_payment = DeliveryPayment.BEFORE
        if request.delivery_payment is not None:
            try:
                delivery_payment = DeliveryPayment(request.delivery_payment)
            except ValueError:
                errors["deliveryPayment"] = "Delivery payment must be 'before' or 'after'"

        if errors:
            raise CheckoutValidationException(errors)
        return ContactDetails(phone, city, address, delivery_payment)

    @staticmethod
    def build_order_items(cart_lines: list[CartItemWithProductDTO]) -> list[OrderItemDTO]:
        """
        Snapshot title and unit price of every purchasable cart line.

        Quantities are clamped to live stock. Lines whose product is gone, unpublished,
        soft-deleted or out of stock are skipped.
        """
        order_items = []
        for line in cart_lines:
            product = line.product
            if product is None:
                continue
            quantity = clamp_quantity(line.quantity, product.available_stock())
            if quantity == 0:
                continue
            unit_price_cents = product.price_cents or 0
            order_items.append(OrderItemDTO(
                product_id=line.product_id,
                title=product.title or "",
                unit_price_cents=unit_price_cents,
                quantity=quantity,
                line_total_cents=unit_price_cents * quantity
            ))
        return order_items

    @staticmethod
    async def build_package_items(selections: list[PackageSelectionDTO], order_items: list[OrderItemDTO],
                                  session: AsyncSession) -> list[OrderItemDTO]:
        """
        Validate add-on package selections and price them as extra order lines.

        Rules:
        - the package must be on the server-side allow-list
        - the parent product must be a line of this order
        - each selection quantity is at least 1
        - per parent line, total package quantity <= the line quantity
        - per package, add-on quantity plus any regular line of it <= the package stock

        Raises:
            InvalidPackageSelectionException: on the first violated rule
        """
        if not selections:
            return []

        packages = await CatalogService.get_packages(session)
        parents = {item.product_id: item for item in order_items}
        per_parent: dict[str, int] = {}
        per_package: dict[str, int] = {item.product_id: item.quantity for item in order_items
                                       if item.product_id in packages}
        per_pair: dict[tuple[str, str], int] = {}

        for selection in selections:
            if selection.quantity < 1:
                raise InvalidPackageSelectionException("Package quantity must be at least 1",
                                                       selection.package_id, selection.product_id)
            if selection.package_id not in packages:
                raise InvalidPackageSelectionException("Package is not available",
                                                       selection.package_id, selection.product_id)
            if selection.product_id not in parents:
                raise InvalidPackageSelectionException("Package selected for a product that is not in the cart",
                                                       selection.package_id, selection.product_id)
            per_parent[selection.product_id] = per_parent.get(selection.product_id, 0) + selection.quantity
            per_package[selection.package_id] = per_package.get(selection.package_id, 0) + selection.quantity
            pair = (selection.product_id, selection.package_id)
            per_pair[pair] = per_pair.get(pair, 0) + selection.quantity

        for product_id, quantity in per_parent.items():
            if quantity > parents[product_id].quantity:
                raise InvalidPackageSelectionException(
                    f"{quantity} package(s) selected for {parents[product_id].quantity} unit(s)",
                    product_id=product_id)
        for package_id, quantity in per_package.items():
            if quantity > packages[package_id].available_stock():
                raise InvalidPackageSelectionException("Package is out of stock", package_id=package_id)

        package_items = []
        for (product_id, package_id), quantity in per_pair.items():
            package = packages[package_id]
            unit_price_cents = package.price_cents or 0
            package_items.append(OrderItemDTO(
                product_id=package_id,
                parent_product_id=product_id,
                title=f"{package.title} (for {parents[product_id].title})",
                unit_price_cents=unit_price_cents,
                quantity=quantity,
                line_total_cents=unit_price_cents * quantity
            ))
        return package_items

    @staticmethod
    async def initiate(user: UserDTO, request: CheckoutRequestDTO, session: AsyncSession) -> CheckoutResultDTO:
        """
        Turn the user's cart into a pending order and start the payment.

        Every validation runs before the first write. The order and its lines are
        committed together; a payment-initialization failure leaves the order
        pending for the webhook or a retry.

        Raises:
            CheckoutValidationException: invalid contact fields
            EmptyCartException: no purchasable lines or a non-positive total
            InvalidPackageSelectionException: package selection rejected
            PaymentInitializationException: provider refused to start the payment
        """
        contact = CheckoutService.validate_contact(request)

        cart_lines = await CartService.get_lines_with_products(user.id, session)
        order_items = CheckoutService.build_order_items(cart_lines)
        if not order_items:
            raise EmptyCartException(user.id)

        order_items += await CheckoutService.build_package_items(request.packages, order_items, session)

        amount_cents = sum(item.line_total_cents for item in order_items)
        if amount_cents <= 0:
            raise EmptyCartException(user.id)

        order_dto = OrderDTO(
            user_id=user.id,
            amount_cents=amount_cents,
            currency=config.CURRENCY,
            status=OrderStatus.PENDING,
            provider=config.PAYMENT_PROVIDER,
            phone=contact.phone,
            city=contact.city,
            address=contact.address,
            delivery_payment=contact.delivery_payment
        )
        try:
            order_id = await OrderRepository.create(order_dto, order_items, session)
            await session_commit(session)
        except Exception as e:
            logger.error(f"Order creation failed for user {user.id}, rolled back: {e}")
            await session_rollback(session)
            raise

        logger.info(f"💾 Order {order_id} created (PENDING, {len(order_items)} line(s), {amount_cents} minor units)")

        url = await PaymentService.initialize_transaction(PaymentInitializationDTO(
            email=user.email or "customer@example.com",
            amount=amount_cents,
            currency=config.CURRENCY.value,
            reference=order_id,
            callback_url=PaymentService.callback_url(),
            metadata={
                "order_id": order_id,
                "user_id": user.id,
                "phone": contact.phone,
                "city": contact.city,
                "address": contact.address,
                "deliveryPayment": contact.delivery_payment.value,
            }
        ))
        return CheckoutResultDTO(order_id=order_id, amount_cents=amount_cents, url=url)

    @staticmethod
    async def request_order(user: UserDTO, phone: str | None, city: str | None, session: AsyncSession) -> None:
        """
        Send the cart to the store owner as an offline order request, then clear it.

        The cart is only cleared once the e-mail went out.

        Raises:
            CheckoutValidationException: phone or city missing
            EmptyCartException: nothing purchasable in the cart
            EmailDeliveryException: the e-mail could not be sent (cart kept)
        """
        phone = (phone or "").strip()
        city = (city or "").strip()
        errors = {}
        if not phone:
            errors["phone"] = "Phone is required"
        if not city:
            errors["city"] = "City is required"
        if errors:
            raise CheckoutValidationException(errors)

        preview = await CartService.get_preview(user.id, session)
        preview.items = [item for item in preview.items if item.quantity > 0]
        if not preview.items:
            raise EmptyCartException(user.id)

        await NotificationService.order_request(user, phone, city, preview)
        await CartService.clear(user.id, session)
        logger.info(f"Order request for user {user.id} sent, cart cleared")
