"""Typed query commands carried by bus payloads.

Payloads arrive as loose mappings. The API first checks them for the fixed
client-error cases, then parses them into these models so the repository
only ever sees validated shapes.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ["FindQuery", "QueryOptions", "SortSpec", "UpdateQuery", "parse_fields", "parse_sort"]

SortSpec = list[tuple[str, bool]]  # (field, descending)


def parse_fields(fields: str | list[str] | tuple[str, ...] | None) -> list[str] | None:
    """Normalize a projection ("key label", "key,label" or a list) to names.

    Returns None when no projection was requested.
    """
    if fields is None:
        return None
    if isinstance(fields, str):
        names = fields.replace(",", " ").split()
    else:
        names = [str(name).strip() for name in fields]
    names = ["id" if name == "_id" else name for name in names if name]
    return names or None


def parse_sort(sort: str | Mapping[str, Any] | None) -> SortSpec:
    """Normalize ``"price -stock"`` or ``{"price": 1, "stock": -1}``."""
    if not sort:
        return []
    if isinstance(sort, str):
        spec = []
        for token in sort.replace(",", " ").split():
            descending = token.startswith("-")
            spec.append((token.lstrip("+-"), descending))
        return spec

    spec = []
    for field, direction in sort.items():
        if isinstance(direction, str):
            descending = direction.lower() in {"desc", "descending", "-1"}
        else:
            descending = int(direction) < 0
        spec.append((field, descending))
    return spec


class QueryOptions(BaseModel):
    """Query modifiers shared by every operation."""

    model_config = ConfigDict(extra="ignore")

    limit: int | None = Field(default=None, ge=0)
    skip: int | None = Field(default=None, ge=0)
    sort: SortSpec = Field(default_factory=list)
    lean: bool | None = None
    multi: bool = False

    @field_validator("sort", mode="before")
    @classmethod
    def _parse_sort(cls, v: Any) -> SortSpec:
        if isinstance(v, list):
            return v
        return parse_sort(v)


class FindQuery(BaseModel):
    """Read request: conditions, projection and options, or a single id."""

    model_config = ConfigDict(extra="ignore")

    conditions: dict[str, Any] = Field(default_factory=dict)
    fields: list[str] | None = None
    options: QueryOptions = Field(default_factory=QueryOptions)
    id: str | None = None

    @field_validator("conditions", mode="before")
    @classmethod
    def _none_conditions(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("fields", mode="before")
    @classmethod
    def _parse_fields(cls, v: Any) -> list[str] | None:
        return parse_fields(v)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> str | None:
        return None if v is None else str(v)

    @field_validator("options", mode="before")
    @classmethod
    def _none_options(cls, v: Any) -> Any:
        return {} if v is None else v


class UpdateQuery(BaseModel):
    model_config = ConfigDict(extra="ignore")

    conditions: dict[str, Any]
    updates: dict[str, Any]
    options: QueryOptions = Field(default_factory=QueryOptions)

    @field_validator("options", mode="before")
    @classmethod
    def _none_options(cls, v: Any) -> Any:
        return {} if v is None else v
