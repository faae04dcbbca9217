"""
SQLAlchemy models for the Product API.
"""

from .base import Base
from .product import Product
from .product_schema import ProductSchema, validate_product

__all__: list[str] = ["Base", "Product", "ProductSchema", "validate_product"]
