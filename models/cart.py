# cart is the durable, per-user container of product quantities. There is at most one
# ACTIVE cart per user; it is created lazily on the first cart mutation.
#
# note that cart lines do NOT reserve stock: availability is re-checked on every
# mutation and the stock is only decremented once the payment has been verified
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Index, func, Enum as SQLEnum

from enums.cart_status import CartStatus
from models.base import Base


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    status = Column(SQLEnum(CartStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
                    nullable=False, default=CartStatus.ACTIVE)
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        Index('ix_carts_user_status', 'user_id', 'status', unique=True),
    )


class CartDTO(BaseModel):
    id: int | None = None
    user_id: str | None = None
    status: CartStatus | None = None
    created_at: datetime | None = None
