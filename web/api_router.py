"""
Storefront JSON API.

Cart, checkout, order request, catalog, session and payment-callback endpoints.

Security:
- Mutations require a valid bearer session token (401 otherwise)
- Reads degrade to an empty result for anonymous callers
- Each request works on its own database session
"""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from exceptions.cart import EmptyCartException
from exceptions.checkout import CheckoutValidationException, InvalidPackageSelectionException
from exceptions.notification import EmailDeliveryException
from exceptions.payment import PaymentInitializationException, PaymentVerificationException
from exceptions.product import ProductNotFoundException
from models.cartItem import GuestCartLineDTO
from models.checkout import CheckoutRequestDTO
from models.user import UserDTO
from repositories.order import OrderRepository
from services.cart import CartService
from services.catalog import CatalogService
from services.checkout import CheckoutService
from services.payment import PaymentService
from services.user import UserService
from web.dependencies import get_current_user, get_optional_user

logger = logging.getLogger(__name__)

api_router = APIRouter(prefix="/api", tags=["api"])


def generate_correlation_id() -> str:
    """Generate unique correlation ID for request tracing."""
    return f"{datetime.now().strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:8]}"


class CartLinePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(..., min_length=1, alias="productId")
    quantity: int = 1


class CartMergePayload(BaseModel):
    lines: list[GuestCartLineDTO] = []


class OrderRequestPayload(BaseModel):
    phone: str | None = None
    city: str | None = None


# ============================================================================
# Session
# ============================================================================

@api_router.get("/auth/me")
async def auth_me(user: UserDTO | None = Depends(get_optional_user), session: AsyncSession = Depends(get_session)):
    if user is None:
        return {"user": None}
    return {
        "user": {"id": user.id, "email": user.email, "full_name": user.full_name},
        "is_admin": await UserService.is_admin(user.id, session)
    }


# ============================================================================
# Catalog
# ============================================================================

@api_router.get("/products")
async def list_products(session: AsyncSession = Depends(get_session)):
    products = await CatalogService.list_products(session)
    return {"ok": True, "products": [product.model_dump() for product in products]}


@api_router.get("/products/{product_id}")
async def get_product(product_id: str, session: AsyncSession = Depends(get_session)):
    try:
        product = await CatalogService.get_product(product_id, session)
    except ProductNotFoundException:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return {"ok": True, "product": product.model_dump()}


@api_router.get("/packages")
async def list_packages(session: AsyncSession = Depends(get_session)):
    packages = await CatalogService.list_packages(session)
    return {"ok": True, "packages": [package.model_dump() for package in packages]}


# ============================================================================
# Cart
# ============================================================================

@api_router.get("/cart")
async def get_cart(user: UserDTO | None = Depends(get_optional_user), session: AsyncSession = Depends(get_session)):
    if user is None:
        return {"ok": True, "lines": [], "subtotal": 0}
    summary = await CartService.get_lines(user.id, session)
    return {
        "ok": True,
        "lines": [{"product_id": line.product_id, "quantity": line.quantity} for line in summary.lines],
        "subtotal": summary.subtotal
    }


@api_router.get("/cart/preview")
async def get_cart_preview(user: UserDTO | None = Depends(get_optional_user),
                           session: AsyncSession = Depends(get_session)):
    if user is None:
        return {"ok": True, "items": [], "subtotal": 0}
    preview = await CartService.get_preview(user.id, session)
    return {
        "ok": True,
        "items": [{
            "productId": item.product_id,
            "title": item.title,
            "price_cents": item.price_cents,
            "quantity": item.quantity,
            "image": item.image
        } for item in preview.items],
        "subtotal": preview.subtotal
    }


@api_router.post("/cart/add")
async def add_to_cart(payload: CartLinePayload, user: UserDTO = Depends(get_current_user),
                      session: AsyncSession = Depends(get_session)):
    result = await CartService.add(user.id, payload.product_id, payload.quantity, session)
    return {"ok": True, "quantity": result.quantity, "stock": result.stock}


@api_router.post("/cart/set")
@api_router.patch("/cart/set")
async def set_cart_quantity(payload: CartLinePayload, user: UserDTO = Depends(get_current_user),
                            session: AsyncSession = Depends(get_session)):
    result = await CartService.set_quantity(user.id, payload.product_id, payload.quantity, session)
    return {"ok": True, "quantity": result.quantity, "stock": result.stock}


@api_router.delete("/cart/remove/{product_id}")
async def remove_from_cart(product_id: str, user: UserDTO = Depends(get_current_user),
                           session: AsyncSession = Depends(get_session)):
    await CartService.remove(user.id, product_id, session)
    return {"ok": True}


@api_router.post("/cart/merge")
async def merge_cart(payload: CartMergePayload, user: UserDTO = Depends(get_current_user),
                     session: AsyncSession = Depends(get_session)):
    lines = await CartService.merge(user.id, payload.lines, session)
    return {"ok": True, "lines": [{"product_id": line.product_id, "quantity": line.quantity} for line in lines]}


# ============================================================================
# Checkout
# ============================================================================

@api_router.post("/checkout")
async def checkout(payload: CheckoutRequestDTO, user: UserDTO = Depends(get_current_user),
                   session: AsyncSession = Depends(get_session)):
    """
    Create a pending order from the cart and return the payment redirect URL.

    Returns:
        200: {"url": ..., "order_id": ...}
        400: invalid contact details (with per-field reasons), empty cart,
             or a rejected package selection
        401: not signed in
        502: payment provider did not start the transaction (order stays pending)
    """
    correlation_id = generate_correlation_id()
    logger.info(f"[{correlation_id}] Checkout requested by user {user.id}")
    try:
        result = await CheckoutService.initiate(user, payload, session)
    except CheckoutValidationException as e:
        logger.info(f"[{correlation_id}] Invalid contact details: {sorted(e.fields.keys())}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail={"error": e.message, "fields": e.fields})
    except EmptyCartException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"error": e.message})
    except InvalidPackageSelectionException as e:
        logger.info(f"[{correlation_id}] Package selection rejected: {e.reason}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"error": e.message})
    except PaymentInitializationException as e:
        logger.error(f"[{correlation_id}] Payment init failed for order {e.order_id}: {e.reason}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY,
                            detail={"error": e.message, "order_id": e.order_id})

    logger.info(f"[{correlation_id}] ✅ Order {result.order_id} awaiting payment")
    return {"url": result.url, "order_id": result.order_id}


@api_router.post("/order-request")
async def order_request(payload: OrderRequestPayload, user: UserDTO = Depends(get_current_user),
                        session: AsyncSession = Depends(get_session)):
    correlation_id = generate_correlation_id()
    try:
        await CheckoutService.request_order(user, payload.phone, payload.city, session)
    except CheckoutValidationException:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail={"ok": False, "error": "Phone and city are required."})
    except EmptyCartException:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"ok": False, "error": "Cart is empty"})
    except EmailDeliveryException as e:
        logger.error(f"[{correlation_id}] Order request e-mail failed for user {user.id}: {e.reason}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail={"ok": False, "error": "Could not send the order request"})
    return {"ok": True, "cleared": True}


# ============================================================================
# Payment callback
# ============================================================================

@api_router.get("/payment/callback")
async def payment_callback(reference: str = Query(..., min_length=1), session: AsyncSession = Depends(get_session)):
    """
    Landing endpoint after the hosted payment page.

    Read-only: reports what the provider says and the order's current status.
    Only the webhook marks orders as paid.
    """
    try:
        verification = await PaymentService.verify_transaction(reference)
        payment_status = verification.status if verification.http_ok else None
    except PaymentVerificationException as e:
        logger.warning(f"Payment callback could not verify {reference}: {e.reason}")
        payment_status = None

    order = await OrderRepository.get_by_id(reference, session)
    return {
        "reference": reference,
        "status": payment_status or "unknown",
        "order_status": order.status.value if order is not None else None
    }
