"""Tests for product record validation."""

import pytest

from product_api.core.exceptions import ProductValidationError
from product_api.models.product_schema import ENUM_MESSAGE, REQUIRED_MESSAGES, validate_product

from .conftest import TEE


def test_minimal_record_keeps_only_supplied_fields() -> None:
    assert validate_product(TEE) == {"key": "tee", "label": "T-Shirt", "price": 10.0, "description": "x"}


def test_empty_record_lists_every_required_field_but_type() -> None:
    with pytest.raises(ProductValidationError) as exc_info:
        validate_product({})

    assert exc_info.value.errors == {
        "key": "The key is required.",
        "label": "The label field is required.",
        "price": "The price field is required.",
        "description": "The description field is required.",
    }


@pytest.mark.parametrize("path", sorted(REQUIRED_MESSAGES))
def test_null_required_field_is_rejected(path: str) -> None:
    with pytest.raises(ProductValidationError) as exc_info:
        validate_product({**TEE, "product_type": "simple", path: None})

    assert exc_info.value.errors == {path: REQUIRED_MESSAGES[path]}


def test_blank_string_counts_as_missing() -> None:
    with pytest.raises(ProductValidationError) as exc_info:
        validate_product({**TEE, "label": ""})

    assert exc_info.value.errors == {"label": "The label field is required."}


def test_enum_message() -> None:
    with pytest.raises(ProductValidationError) as exc_info:
        validate_product({**TEE, "product_type": "gizmo"})

    assert exc_info.value.errors == {
        "product_type": ENUM_MESSAGE.replace("{VALUE}", "gizmo").replace("{PATH}", "product_type")
    }
    assert exc_info.value.errors["product_type"] == "`gizmo` is not a valid enum value for path `product_type`"


@pytest.mark.parametrize("product_type", ["simple", "configurable", "bundle", "digital"])
def test_known_product_types(product_type: str) -> None:
    assert validate_product({**TEE, "product_type": product_type})["product_type"] == product_type


def test_type_errors_are_reported_by_path() -> None:
    with pytest.raises(ProductValidationError) as exc_info:
        validate_product({**TEE, "stock": "lots"})

    assert list(exc_info.value.errors) == ["stock"]


def test_optional_nulls_are_dropped() -> None:
    document = validate_product({**TEE, "sku": None, "products": ["a", "b"], "custom": {"color": "green"}})

    assert "sku" not in document
    assert document["products"] == ["a", "b"]
    assert document["custom"] == {"color": "green"}


def test_unknown_fields_are_ignored() -> None:
    assert "colour" not in validate_product({**TEE, "colour": "red"})


def test_non_mapping_is_rejected() -> None:
    with pytest.raises(ProductValidationError, match="Expected an object"):
        validate_product(["not", "a", "record"])
