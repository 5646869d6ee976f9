from pydantic import BaseModel, Field, ConfigDict
from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint, UniqueConstraint

from models.base import Base
from models.product import ProductDTO


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False)

    __table_args__ = (
        # Upserts resolve on this key, so concurrent writers converge on one line
        UniqueConstraint('cart_id', 'product_id', name='uq_cart_items_cart_product'),
        CheckConstraint('quantity > 0', name='check_quantity_positive'),
    )


class CartItemDTO(BaseModel):
    id: int | None = None
    cart_id: int | None = None
    product_id: str | None = None
    quantity: int | None = None


class CartLineResultDTO(BaseModel):
    """Outcome of a cart mutation: the stored (clamped) quantity and the live stock."""
    quantity: int
    stock: int


class GuestCartLineDTO(BaseModel):
    """A line from a cart held by the client before sign-in."""
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    quantity: int = 0


class CartPreviewItemDTO(BaseModel):
    product_id: str
    title: str
    price_cents: int
    quantity: int
    image: str | None = None


class CartItemWithProductDTO(BaseModel):
    """
    Cart line joined with its product.

    `product` is None when the referenced product row no longer exists.
    """
    product_id: str
    quantity: int
    product: ProductDTO | None = None


class CartSummaryDTO(BaseModel):
    lines: list[CartItemDTO] = []
    subtotal: int = 0


class CartPreviewDTO(BaseModel):
    items: list[CartPreviewItemDTO] = []
    subtotal: int = 0
