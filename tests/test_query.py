"""Tests for query payload parsing."""

import pytest
from pydantic import ValidationError

from product_api.core.query import FindQuery, QueryOptions, UpdateQuery, parse_fields, parse_sort


@pytest.mark.parametrize(
    ("fields", "expected"),
    [
        (None, None),
        ("", None),
        ("key label", ["key", "label"]),
        ("key,label", ["key", "label"]),
        (["_id", "price"], ["id", "price"]),
    ],
)
def test_parse_fields(fields: object, expected: list[str] | None) -> None:
    assert parse_fields(fields) == expected


@pytest.mark.parametrize(
    ("sort", "expected"),
    [
        (None, []),
        ("price", [("price", False)]),
        ("price -stock", [("price", False), ("stock", True)]),
        ("+label,-price", [("label", False), ("price", True)]),
        ({"price": 1, "stock": -1}, [("price", False), ("stock", True)]),
        ({"price": "desc", "label": "asc"}, [("price", True), ("label", False)]),
    ],
)
def test_parse_sort(sort: object, expected: list[tuple[str, bool]]) -> None:
    assert parse_sort(sort) == expected


def test_find_query_defaults() -> None:
    query = FindQuery.model_validate({"conditions": None, "options": None})

    assert query.conditions == {}
    assert query.fields is None
    assert query.options == QueryOptions()
    assert query.id is None


def test_find_query_parses_nested_options() -> None:
    query = FindQuery.model_validate(
        {"id": 42, "fields": "key", "options": {"sort": "-price", "limit": 5, "lean": True}}
    )

    assert query.id == "42"
    assert query.fields == ["key"]
    assert query.options.sort == [("price", True)]
    assert query.options.limit == 5
    assert query.options.lean is True


@pytest.mark.parametrize("options", [{"limit": -1}, {"skip": -5}, {"limit": "many"}])
def test_invalid_options_are_rejected(options: dict) -> None:
    with pytest.raises(ValidationError):
        FindQuery.model_validate({"conditions": {}, "options": options})


def test_update_query_requires_mappings() -> None:
    query = UpdateQuery.model_validate({"conditions": {"key": "tee"}, "updates": {"price": 1}})
    assert query.options.multi is False

    with pytest.raises(ValidationError):
        UpdateQuery.model_validate({"conditions": "key=tee", "updates": {"price": 1}})
