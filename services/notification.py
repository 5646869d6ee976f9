import asyncio
import json
import logging
from pathlib import Path

import aiohttp
from jinja2 import Environment, FileSystemLoader, select_autoescape

import config
from exceptions.notification import EmailDeliveryException
from external_api.ApiWrapper import ApiWrapper
from models.cartItem import CartPreviewDTO
from models.order import OrderDTO
from models.orderItem import OrderItemDTO
from models.user import UserDTO

logger = logging.getLogger(__name__)

templates_dir = Path(__file__).parent.parent / "templates" / "email"
templates = Environment(
    loader=FileSystemLoader(str(templates_dir)),
    autoescape=select_autoescape(["html"])
)


class NotificationService:
    """Store-owner e-mails sent through the Resend HTTP API."""

    @staticmethod
    def _render(template_name: str, **context) -> str:
        context.setdefault("money", config.CURRENCY.format_amount)
        return templates.get_template(template_name).render(**context)

    @staticmethod
    async def send_email(subject: str, html: str, text: str | None = None, reply_to: str | None = None) -> None:
        """
        Send one e-mail to the store owner.

        Raises:
            EmailDeliveryException: provider unreachable, timed out, or rejected the message.
        """
        payload = {
            "from": f"{config.STORE_NAME} <{config.FROM_EMAIL}>",
            "to": [config.STORE_OWNER_EMAIL],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text
        if reply_to:
            payload["reply_to"] = reply_to

        headers = {
            "Authorization": f"Bearer {config.RESEND_API_KEY}",
            "Content-Type": "application/json"
        }
        try:
            response = await ApiWrapper.fetch_api_request(
                config.RESEND_API_URL,
                method="POST",
                data=json.dumps(payload),
                headers=headers,
                timeout=config.EMAIL_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError:
            raise EmailDeliveryException(subject, f"timed out after {config.EMAIL_TIMEOUT_SECONDS}s")
        except aiohttp.ClientError as e:
            raise EmailDeliveryException(subject, repr(e))

        if not response.ok:
            reason = response.json_body.get("message") or f"HTTP {response.status}"
            raise EmailDeliveryException(subject, reason)
        logger.info(f"Email sent: '{subject}'")

    @staticmethod
    async def paid_order(order: OrderDTO, lines: list[OrderItemDTO], customer_email: str | None) -> None:
        """Tell the store owner an order was paid. Reply-to is the customer."""
        subject = f"Paid order {order.id} - {config.CURRENCY.format_amount(order.amount_cents)}"
        context = {"order": order, "lines": lines, "customer_email": customer_email}
        await NotificationService.send_email(
            subject,
            html=NotificationService._render("paid_order.html", **context),
            text=NotificationService._render("paid_order.txt", **context),
            reply_to=customer_email
        )

    @staticmethod
    async def order_request(user: UserDTO, phone: str, city: str, preview: CartPreviewDTO) -> None:
        """Forward a cart to the store owner as an offline order request (no payment)."""
        subject = f"Order request from {user.full_name or user.email or 'customer'}"
        html = NotificationService._render(
            "order_request.html",
            customer_name=user.full_name,
            customer_email=user.email,
            phone=phone,
            city=city,
            items=preview.items,
            subtotal=preview.subtotal
        )
        await NotificationService.send_email(subject, html=html, reply_to=user.email)
