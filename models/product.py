from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint, func, Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.product_status import ProductStatus
from models.base import Base, generate_uuid


class Product(Base):
    __tablename__ = 'products'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=False, default="")
    # Minor currency units (pesewas); never a float
    price_cents = Column(Integer, nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    status = Column(SQLEnum(ProductStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
                    nullable=False, default=ProductStatus.PUBLISHED)
    created_at = Column(DateTime, default=func.now())

    # Soft delete keeps the row so that order snapshots and cart lines stay resolvable
    deleted_at = Column(DateTime, nullable=True)
    deleted_by = Column(String(36), nullable=True)
    deleted_reason = Column(Text, nullable=True)

    images = relationship("ProductImage", back_populates="product", cascade="all, delete-orphan",
                          order_by="ProductImage.sort")

    __table_args__ = (
        CheckConstraint('price_cents >= 0', name='check_price_cents_non_negative'),
        CheckConstraint('stock >= 0', name='check_stock_non_negative'),
    )


class ProductImage(Base):
    __tablename__ = 'product_images'

    id = Column(Integer, primary_key=True)
    product_id = Column(String(36), ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    url = Column(String, nullable=False)
    sort = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="images")


class ProductDTO(BaseModel):
    id: str | None = None
    title: str | None = None
    slug: str | None = None
    description: str | None = None
    price_cents: int | None = None
    stock: int | None = None
    status: ProductStatus | None = None
    created_at: datetime | None = None
    deleted_at: datetime | None = None
    deleted_by: str | None = None
    deleted_reason: str | None = None

    def is_available(self) -> bool:
        """Published and not soft-deleted."""
        return self.status == ProductStatus.PUBLISHED and self.deleted_at is None

    def available_stock(self) -> int:
        """Live stock as seen by the cart; unavailable products have none."""
        if not self.is_available():
            return 0
        return max(0, self.stock or 0)


class ProductImageDTO(BaseModel):
    id: int | None = None
    product_id: str | None = None
    url: str | None = None
    sort: int | None = None


class CatalogProductDTO(BaseModel):
    id: str
    title: str
    slug: str
    description: str
    price_cents: int
    stock: int
    images: list[str] = []
    categories: list[str] = []


class ProductCreateRequestDTO(BaseModel):
    title: str = ""
    description: str = ""
    price_cents: int = 0
    stock: int = 0
    status: str = "published"
    category_ids: list[int] = []
    image_urls: list[str] = []


class ProductUpdateRequestDTO(BaseModel):
    """Only the fields that are set are written."""
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    description: str | None = None
    price_cents: int | None = None
    stock: int | None = None
    status: str | None = None
    add_category_ids: list[int] = Field(default=[], alias="addCategoryIds")
    remove_category_ids: list[int] = Field(default=[], alias="removeCategoryIds")
    image_urls: list[str] = []
