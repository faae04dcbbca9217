"""Repository layer for database operations.

This module contains concrete repository implementations for
data access operations.
"""

from .product_repository import ProductRepository, product_model

__all__ = ["ProductRepository", "product_model"]
