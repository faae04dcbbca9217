"""Product repository for database operations."""

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from product_api.core.base_repository import BaseRepository
from product_api.models.product import Product
from product_api.models.product_schema import validate_product


class ProductRepository(BaseRepository[Product, str]):
    """Repository for Product entity operations.

    Records are validated against the product schema before insert, so a
    rejected record never reaches the database.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ProductRepository with database session.

        Args:
            session: Async SQLAlchemy session
        """
        super().__init__(Product, session)

    async def create_product(self, data: Mapping[str, Any]) -> Product:
        """Validate and insert a single product.

        Raises:
            ProductValidationError: Record violates the schema
        """
        return await self.create(**validate_product(data))

    async def create_products(self, items: Sequence[Mapping[str, Any]]) -> list[Product]:
        """Validate every record, then insert them together.

        Nothing is inserted when any record fails validation.
        """
        return await self.create_many([validate_product(item) for item in items])


def product_model(session: AsyncSession) -> ProductRepository:
    """Bind the Product schema to a live session and return its query handle."""
    return ProductRepository(session)
