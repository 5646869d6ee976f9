import asyncio
import logging
from urllib.parse import quote

import aiohttp

import config
from exceptions.payment import PaymentInitializationException, PaymentVerificationException
from external_api.ApiWrapper import ApiWrapper
from models.payment import PaymentInitializationDTO, PaymentVerificationDTO

logger = logging.getLogger(__name__)


class PaymentService:
    """Paystack transaction API: initialize at checkout, verify from the webhook."""

    @staticmethod
    def _headers() -> dict:
        return {
            "Authorization": f"Bearer {config.PAYSTACK_SECRET_KEY}",
            "Content-Type": "application/json"
        }

    @staticmethod
    def callback_url() -> str:
        return f"{config.SITE_URL}/api/payment/callback"

    @staticmethod
    async def initialize_transaction(payment_dto: PaymentInitializationDTO) -> str:
        """
        Start a hosted-checkout transaction keyed by the order id.

        Returns:
            The provider's authorization URL the shopper is redirected to.

        Raises:
            PaymentInitializationException: provider unreachable, timed out, rejected
                the request, or answered without an authorization URL.
        """
        try:
            response = await ApiWrapper.fetch_api_request(
                f"{config.PAYSTACK_BASE_URL}/transaction/initialize",
                method="POST",
                data=payment_dto.model_dump_json(),
                headers=PaymentService._headers(),
                timeout=config.PAYSTACK_TIMEOUT_SECONDS
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Payment init request failed for order {payment_dto.reference}: {e!r}")
            raise PaymentInitializationException(payment_dto.reference, "Payment init failed")

        body = response.json_body
        data = body.get("data") or {}
        url = data.get("authorization_url") if isinstance(data, dict) else None
        if not response.ok or not body.get("status") or not url:
            reason = body.get("message") or "Payment init failed"
            logger.error(f"Payment init rejected for order {payment_dto.reference} "
                         f"(HTTP {response.status}): {reason}")
            raise PaymentInitializationException(payment_dto.reference, reason)

        logger.info(f"Payment initialized for order {payment_dto.reference}")
        return url

    @staticmethod
    async def verify_transaction(reference: str) -> PaymentVerificationDTO:
        """
        Ask the provider for the authoritative status of a transaction.

        Raises:
            PaymentVerificationException: provider unreachable or timed out.
        """
        try:
            response = await ApiWrapper.fetch_api_request(
                f"{config.PAYSTACK_BASE_URL}/transaction/verify/{quote(reference, safe='')}",
                method="GET",
                headers=PaymentService._headers(),
                timeout=config.PAYSTACK_TIMEOUT_SECONDS
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PaymentVerificationException(reference, repr(e))

        data = response.json_body.get("data") or {}
        if not isinstance(data, dict):
            data = {}
        return PaymentVerificationDTO(
            reference=reference,
            status=data.get("status"),
            amount=data.get("amount"),
            currency=data.get("currency"),
            http_ok=response.ok
        )
