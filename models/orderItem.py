from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from models.base import Base


class OrderItem(Base):
    """
    Immutable snapshot of one purchased line.

    Title and unit price are copied from the product at checkout so later
    product edits never change what the customer was charged.
    """
    __tablename__ = 'order_items'

    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_order_item_positive_quantity'),
        CheckConstraint('unit_price_cents >= 0', name='ck_order_item_non_negative_price'),
        CheckConstraint('line_total_cents = unit_price_cents * quantity', name='ck_order_item_line_total'),
        Index('ix_order_items_order_id', 'order_id'),
    )

    id = Column(Integer, primary_key=True)
    order_id = Column(String(36), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    # No FK: hard-deleted products must not erase order history
    product_id = Column(String(36), nullable=False)
    # Set for package add-on lines; points at the cart line the package was chosen for
    parent_product_id = Column(String(36), nullable=True)
    title = Column(String, nullable=False)
    unit_price_cents = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    line_total_cents = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")


class OrderItemDTO(BaseModel):
    id: int | None = None
    order_id: str | None = None
    product_id: str | None = None
    parent_product_id: str | None = None
    title: str | None = None
    unit_price_cents: int | None = None
    quantity: int | None = None
    line_total_cents: int | None = None
