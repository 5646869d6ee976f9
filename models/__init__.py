"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for relationships to work correctly.
"""

from models.base import Base
from models.user import User
from models.admin import Admin
from models.category import Category, ProductCategory
from models.product import Product, ProductImage
from models.cart import Cart
from models.cartItem import CartItem
from models.order import Order
from models.orderItem import OrderItem

__all__ = [
    'Base',
    'User',
    'Admin',
    'Category',
    'ProductCategory',
    'Product',
    'ProductImage',
    'Cart',
    'CartItem',
    'Order',
    'OrderItem',
]
