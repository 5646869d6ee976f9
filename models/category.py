from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, ForeignKey

from models.base import Base


class Category(Base):
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True, unique=True)
    name = Column(String, nullable=False, unique=True)


class ProductCategory(Base):
    __tablename__ = 'product_categories'

    product_id = Column(String(36), ForeignKey('products.id', ondelete='CASCADE'), primary_key=True)
    category_id = Column(Integer, ForeignKey('categories.id', ondelete='CASCADE'), primary_key=True)


class CategoryDTO(BaseModel):
    id: int | None = None
    name: str | None = None
