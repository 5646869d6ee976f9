from pydantic import BaseModel, Field, ConfigDict


class PackageSelectionDTO(BaseModel):
    """An add-on package chosen for one cart line."""
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    package_id: str = Field(alias="packageId")
    quantity: int = 1


class CheckoutRequestDTO(BaseModel):
    """
    Raw checkout form.

    Fields are deliberately loose strings; CheckoutService validates them so that
    every invalid field is reported at once instead of failing on the first one.
    """
    model_config = ConfigDict(populate_by_name=True)

    phone: str | None = None
    city: str | None = None
    address: str | None = None
    delivery_payment: str | None = Field(default=None, alias="deliveryPayment")
    packages: list[PackageSelectionDTO] = []


class CheckoutResultDTO(BaseModel):
    order_id: str
    amount_cents: int
    url: str
