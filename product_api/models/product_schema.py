"""Product document schema: field types, defaults and validation messages.

The messages below are returned to API consumers verbatim when a record is
rejected, so changing them changes the public contract.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from product_api.core.enums import ProductType
from product_api.core.exceptions import ProductValidationError

__all__ = ["ENUM_MESSAGE", "REQUIRED_MESSAGES", "ProductSchema", "validate_product"]

REQUIRED_MESSAGES: dict[str, str] = {
    "key": "The key is required.",
    "label": "The label field is required.",
    "product_type": "The product_type field is required.",
    "price": "The price field is required.",
    "description": "The description field is required.",
}

ENUM_MESSAGE = "`{VALUE}` is not a valid enum value for path `{PATH}`"


class ProductSchema(BaseModel):
    """Typed shape of a Product record accepted on create."""

    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    key: str
    label: str
    product_type: ProductType = ProductType.SIMPLE
    products: list[str] = Field(default_factory=list, description="Bundle component ids")
    price: float
    cost: float | None = None
    weight: float | None = None
    sku: str | None = None
    short_description: str | None = None
    description: str
    visibility: list[Any] = Field(default_factory=lambda: ["search", "catalog"])
    stock: int = 0
    allow_backorder: bool | None = None
    active_at: datetime | None = None
    active_until: datetime | None = None
    min_qty: int = 1
    max_qty: int | None = None
    attributes: list[Any] = Field(default_factory=lambda: [{}])
    files: list[Any] = Field(default_factory=lambda: [{}])
    shippable: bool | None = None
    combineable: bool | None = None
    combineable_amount: float | None = None
    categories: list[str] = Field(default_factory=list)
    media: list[Any] = Field(default_factory=lambda: [{}])
    custom: dict[str, Any] = Field(default_factory=dict)


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def validate_product(data: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a create payload and return the column values to insert.

    Only keys the caller supplied are returned; column defaults fill in the
    rest at insert time. ``product_type`` falls back to its default only when
    absent, an explicit null is rejected.

    Raises:
        ProductValidationError: One entry per failing path.
    """
    if not isinstance(data, Mapping):
        raise ProductValidationError({"": f"Expected an object, got {type(data).__name__}"})

    errors: dict[str, str] = {}
    for path, message in REQUIRED_MESSAGES.items():
        if path == "product_type" and path not in data:
            continue
        if _is_blank(data.get(path)):
            errors[path] = message

    product_type = data.get("product_type")
    if not _is_blank(product_type) and product_type not in {t.value for t in ProductType}:
        errors["product_type"] = ENUM_MESSAGE.replace("{VALUE}", str(product_type)).replace(
            "{PATH}", "product_type"
        )

    if errors:
        raise ProductValidationError(errors)

    try:
        document = ProductSchema.model_validate(data)
    except ValidationError as exc:
        raise ProductValidationError(
            {".".join(str(part) for part in err["loc"]): err["msg"] for err in exc.errors()}
        ) from exc

    # Explicit nulls fall back to the column defaults
    return {
        name: value
        for name, value in document.model_dump(exclude_unset=True).items()
        if value is not None
    }
