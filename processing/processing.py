import hashlib
import hmac
import json
import logging

from fastapi import APIRouter, Request, HTTPException, Depends
from sqlalchemy.ext.asyncio import AsyncSession

import config

# Validate critical configuration even if processing_router is mounted standalone
# This prevents None secret crashes when used outside of app.py
from utils.config_validator import validate_or_exit
validate_or_exit(config)
from db import get_session
from exceptions.order import OrderNotFoundException
from models.payment import WebhookEventDTO
from services.cart import CartService
from services.notification import NotificationService
from services.order import OrderService
from services.payment import PaymentService

logger = logging.getLogger(__name__)

processing_router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

SIGNATURE_HEADER = "x-paystack-signature"
ACK = {"ok": True}


def __security_check(signature_header: str | None, payload: bytes) -> bool:
    """
    Validate HMAC-SHA512 signature of the raw webhook body.

    Security: Missing signature header is treated as authentication failure.
    The body is signed exactly as received, before any parsing.

    Returns:
        bool: True if signature is valid, False otherwise
    """
    if not signature_header:
        logger.warning("[Webhook] Rejected: missing signature header")
        return False
    if not config.PAYSTACK_SECRET_KEY:
        logger.error("[Webhook] Rejected: PAYSTACK_SECRET_KEY not configured")
        return False

    secret_key = config.PAYSTACK_SECRET_KEY.encode("utf-8")
    generated_signature = hmac.new(secret_key, payload, hashlib.sha512).hexdigest()

    # Use timing-safe comparison to prevent timing attacks
    return hmac.compare_digest(generated_signature, signature_header)


def parse_event(payload: bytes) -> WebhookEventDTO | None:
    """Extract event name, reference and customer e-mail; None for an unusable body."""
    try:
        body = json.loads(payload)
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(body, dict):
        return None
    data = body.get("data")
    if not isinstance(data, dict):
        return None
    reference = data.get("reference")
    if not isinstance(reference, str) or not reference:
        return None
    customer = data.get("customer") if isinstance(data.get("customer"), dict) else {}
    return WebhookEventDTO(event=body.get("event"), reference=reference, customer_email=customer.get("email"))


async def process_payment_event(event: WebhookEventDTO, session: AsyncSession) -> None:
    """
    Reconcile one authenticated payment event.

    Steps: re-verify with the provider, apply the order transition and stock
    decrements exactly once, clear the owner's cart, notify the store owner.
    Safe to call any number of times for the same reference.
    """
    reference = event.reference

    verification = await PaymentService.verify_transaction(reference)
    if not verification.is_successful():
        logger.warning(f"[Webhook] Verification says not successful | reference={reference} "
                       f"status={verification.status} http_ok={verification.http_ok}")
        return
    logger.info(f"[Webhook] ✅ Provider verified transaction {reference}")

    transitioned = await OrderService.mark_paid(reference, session)

    try:
        order, lines = await OrderService.get_with_items(reference, session)
    except OrderNotFoundException:
        logger.warning(f"[Webhook] No order for verified reference {reference}")
        return

    try:
        await CartService.clear(order.user_id, session)
    except Exception as e:
        logger.warning(f"[Webhook] Cart clear failed for user {order.user_id} (order {reference}): {e!r}")

    if not transitioned:
        logger.info(f"[Webhook] Order {reference} already processed, no e-mail sent")
        return

    try:
        await NotificationService.paid_order(order, lines, event.customer_email)
    except Exception as e:
        logger.warning(f"[Webhook] Paid-order e-mail failed for order {reference}: {e!r}")


@processing_router.post("/paystack")
@processing_router.post("/payment")
async def payment_webhook(request: Request, session: AsyncSession = Depends(get_session)):
    """
    Payment provider webhook.

    401 on a bad signature. Every authenticated delivery is acknowledged with 200,
    whatever happens afterwards, so the provider stops retrying; redeliveries are
    harmless because order processing is idempotent.
    """
    request_body = await request.body()

    if __security_check(request.headers.get(SIGNATURE_HEADER), request_body) is False:
        logger.error("[Webhook] ❌ SECURITY CHECK FAILED - Invalid HMAC signature")
        raise HTTPException(status_code=401, detail="Invalid signature")

    logger.info("[Webhook] ✅ Security check passed")

    event = parse_event(request_body)
    if event is None:
        logger.error("[Webhook] Malformed payload or missing reference, acknowledged without processing")
        return ACK

    logger.info(f"[Webhook] Event '{event.event}' for reference {event.reference}")
    try:
        await process_payment_event(event, session)
    except Exception as e:
        logger.exception(f"[Webhook] Processing failed for reference {event.reference}: {e!r}")
        return ACK

    logger.info(f"[Webhook] Processing completed for reference {event.reference}")
    return ACK
