from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint, func, Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.currency import Currency
from enums.delivery_payment import DeliveryPayment
from enums.order_status import OrderStatus
from models.base import Base, generate_uuid


class Order(Base):
    __tablename__ = 'orders'

    # Doubles as the payment provider's transaction reference
    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(SQLEnum(Currency, values_callable=lambda e: [m.value for m in e], native_enum=False),
                      nullable=False)
    status = Column(SQLEnum(OrderStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
                    nullable=False, default=OrderStatus.PENDING)
    provider = Column(String, nullable=False, default="paystack")
    created_at = Column(DateTime, default=func.now())
    paid_at = Column(DateTime, nullable=True)

    # Contact details collected at checkout
    phone = Column(String, nullable=False)
    city = Column(String, nullable=False)
    address = Column(Text, nullable=False)
    delivery_payment = Column(SQLEnum(DeliveryPayment, values_callable=lambda e: [m.value for m in e],
                                      native_enum=False),
                              nullable=False, default=DeliveryPayment.BEFORE)

    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan')

    __table_args__ = (
        CheckConstraint('amount_cents > 0', name='check_order_amount_positive'),
    )


class OrderDTO(BaseModel):
    id: str | None = None
    user_id: str | None = None
    amount_cents: int | None = None
    currency: Currency | None = None
    status: OrderStatus | None = None
    provider: str | None = None
    created_at: datetime | None = None
    paid_at: datetime | None = None
    phone: str | None = None
    city: str | None = None
    address: str | None = None
    delivery_payment: DeliveryPayment | None = None
