from pydantic import BaseModel


class PaymentInitializationDTO(BaseModel):
    """Body of the provider's transaction/initialize call."""
    email: str
    amount: int
    currency: str
    reference: str
    callback_url: str
    metadata: dict = {}


class PaymentVerificationDTO(BaseModel):
    """Subset of the provider's transaction/verify response we rely on."""
    reference: str
    status: str | None = None
    amount: int | None = None
    currency: str | None = None
    http_ok: bool = False

    def is_successful(self) -> bool:
        return self.http_ok and self.status == "success"


class WebhookEventDTO(BaseModel):
    """Parsed payment webhook event."""
    event: str | None = None
    reference: str | None = None
    customer_email: str | None = None
