"""
Product model for storing catalog records.
"""

from collections.abc import Iterable
from datetime import timedelta
from typing import Any

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, Numeric, String, Text

from product_api.core.enums import ProductType

from .base import Base, TimestampMixin, generate_id, utc_now

# Products stay active for a century unless told otherwise
ACTIVE_LIFETIME = timedelta(days=365 * 100)


def default_active_until() -> Any:
    return utc_now() + ACTIVE_LIFETIME


def _placeholder_list() -> list[dict]:
    return [{}]


class Product(Base, TimestampMixin):
    """
    Product model representing a catalog entry.

    Attributes:
        id: Opaque identifier assigned on insert
        key: Machine key, e.g. ``tshirt_green_large``
        label: Display label
        product_type: One of simple, configurable, bundle, digital
        products: Component product ids for bundles (order preserved)
        price, cost, weight: Numeric values
        sku, short_description, description: Descriptive text
        visibility: Where the product is listed, e.g. ``["search", "catalog"]``
        stock, allow_backorder, min_qty, max_qty: Inventory and cart limits
        active_at, active_until: Activation window
        attributes, files, media: Freeform lists
        shippable, combineable, combineable_amount: Fulfilment flags
        categories: Category ids (order preserved)
        custom: Freeform key/value storage
        date_created, date_modified, date_deleted: Lifecycle timestamps

    References in ``products`` and ``categories`` are not checked; dangling ids
    are possible.
    """

    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=generate_id)
    key = Column(String(255), nullable=False, index=True)
    label = Column(String(255), nullable=False)
    product_type = Column(String(32), nullable=False, default=ProductType.SIMPLE.value)
    products = Column(JSON, nullable=False, default=list)
    price = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    cost = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    weight = Column(Numeric(12, 3, asdecimal=False), nullable=True)
    sku = Column(String(255), nullable=True, index=True)
    short_description = Column(String(1000), nullable=True)
    description = Column(Text, nullable=False)
    visibility = Column(JSON, nullable=False, default=lambda: ["search", "catalog"])
    stock = Column(Integer, nullable=False, default=0)
    allow_backorder = Column(Boolean, nullable=True)
    active_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    active_until = Column(DateTime(timezone=True), nullable=False, default=default_active_until)
    min_qty = Column(Integer, nullable=False, default=1)
    max_qty = Column(Integer, nullable=True)
    attributes = Column(JSON, nullable=False, default=_placeholder_list)
    files = Column(JSON, nullable=False, default=_placeholder_list)
    shippable = Column(Boolean, nullable=True)
    combineable = Column(Boolean, nullable=True)
    combineable_amount = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    categories = Column(JSON, nullable=False, default=list)
    media = Column(JSON, nullable=False, default=_placeholder_list)
    custom = Column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, key='{self.key}', product_type='{self.product_type}')>"

    @classmethod
    def field_names(cls) -> list[str]:
        return [column.name for column in cls.__table__.columns]

    def to_dict(self, fields: Iterable[str] | None = None) -> dict[str, Any]:
        """Convert product to a plain dictionary.

        Args:
            fields: Restrict output to these columns; ``id`` is always kept.
        """
        names = self.field_names()
        if fields is not None:
            wanted = set(fields) | {"id"}
            names = [name for name in names if name in wanted]

        data: dict[str, Any] = {}
        for name in names:
            value = getattr(self, name)
            data[name] = value.isoformat() if hasattr(value, "isoformat") else value
        return data
