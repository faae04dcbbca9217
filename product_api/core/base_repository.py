"""
Generic repository base class translating document-style queries to SQLAlchemy.

Features:
    - Conditions as mappings: ``{"key": "tee", "price": {"$gte": 5}}``
    - Supported operators: $eq $ne $gt $gte $lt $lte $in $nin
    - ``_id`` accepted as an alias of the ``id`` primary key
    - Options: sort, skip, limit (see ``QueryOptions``)
    - Single/multi update, hard and soft delete, counting
    - Automatic rollback on database errors

Usage:
    class ProductRepository(BaseRepository[Product, str]):
        ...

    async with AsyncDBPool.get_session() as session:
        repo = ProductRepository(session)
        products = await repo.find({"product_type": "bundle"}, QueryOptions(limit=10))
        await session.commit()
"""

import operator
from abc import ABC
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import Boolean, DateTime, Integer, Numeric, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from .exceptions import QueryError
from .query import QueryOptions

__all__ = ["BaseRepository"]

ModelType = TypeVar("ModelType")
IDType = TypeVar("IDType", int, str)

_OPERATORS: dict[str, Callable[[Any, Any], ColumnElement[bool]]] = {
    "$eq": operator.eq,
    "$ne": operator.ne,
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
    "$in": lambda column, value: column.in_(value),
    "$nin": lambda column, value: column.not_in(value),
}


_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ValueError(value)


_STRING_PARSERS: dict[type, tuple[Callable[[str], Any], str]] = {
    DateTime: (datetime.fromisoformat, "timestamp"),
    Boolean: (_parse_bool, "boolean"),
    Integer: (int, "integer"),
    Numeric: (float, "number"),
}


def _is_operator_mapping(value: Any) -> bool:
    return isinstance(value, Mapping) and bool(value) and all(str(k).startswith("$") for k in value)


class BaseRepository(Generic[ModelType, IDType], ABC):
    """Base repository with async document-style CRUD for SQLAlchemy models."""

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    # ------------------------------------------------------------------
    # Query building
    # ------------------------------------------------------------------

    def column(self, field: str) -> Any:
        """Resolve a field name to its mapped column attribute.

        Raises:
            QueryError: Field is not a column of the model
        """
        name = "id" if field == "_id" else field
        if name not in self.model.__table__.columns:
            msg = f"Unknown field '{field}' for {self.model.__name__}"
            raise QueryError(msg)
        return getattr(self.model, name)

    def _coerce(self, column: Any, value: Any) -> Any:
        """Convert string values to the column's Python type.

        Strings arrive from JSON payloads (ISO timestamps) and from query
        strings, where every value is text.
        """
        if isinstance(value, (list, tuple)):
            return [self._coerce(column, item) for item in value]
        if not isinstance(value, str):
            return value

        column_type = self.model.__table__.columns[column.key].type
        for type_, (parse, label) in _STRING_PARSERS.items():
            if isinstance(column_type, type_):
                try:
                    return parse(value)
                except ValueError as exc:
                    msg = f"Invalid {label} '{value}' for field '{column.key}'"
                    raise QueryError(msg) from exc
        return value

    def where(self, conditions: Mapping[str, Any] | None) -> list[ColumnElement[bool]]:
        """Translate a conditions mapping into WHERE clauses (AND-ed)."""
        clauses: list[ColumnElement[bool]] = []
        for field, value in (conditions or {}).items():
            column = self.column(field)

            if not _is_operator_mapping(value):
                value = {"$eq": value}

            for op, operand in value.items():
                compare = _OPERATORS.get(op)
                if compare is None:
                    msg = f"Unsupported operator '{op}' on field '{field}'"
                    raise QueryError(msg)
                if op in ("$in", "$nin") and not isinstance(operand, (list, tuple)):
                    msg = f"Operator '{op}' on field '{field}' expects a list"
                    raise QueryError(msg)
                operand = self._coerce(column, operand)
                if operand is None and op in ("$eq", "$ne"):
                    clauses.append(column.is_(None) if op == "$eq" else column.is_not(None))
                else:
                    clauses.append(compare(column, operand))
        return clauses

    def _values(self, updates: Mapping[str, Any]) -> dict[str, Any]:
        if "$set" in updates:
            extra = [key for key in updates if key != "$set"]
            if extra:
                msg = f"Unsupported update operator(s): {', '.join(extra)}"
                raise QueryError(msg)
            updates = updates["$set"]
            if not isinstance(updates, Mapping):
                msg = "Operator '$set' expects an object of field values"
                raise QueryError(msg)

        values: dict[str, Any] = {}
        for field, value in updates.items():
            if str(field).startswith("$"):
                msg = f"Unsupported update operator '{field}'"
                raise QueryError(msg)
            column = self.column(field)
            if column.key == "id":
                msg = "The id field cannot be updated"
                raise QueryError(msg)
            values[column.key] = self._coerce(column, value)
        return values

    def _select(self, conditions: Mapping[str, Any] | None, options: QueryOptions | None = None) -> Any:
        options = options or QueryOptions()
        query = select(self.model).where(*self.where(conditions))

        for field, descending in options.sort:
            column = self.column(field)
            query = query.order_by(column.desc() if descending else column.asc())

        if options.skip:
            query = query.offset(options.skip)
        if options.limit:
            query = query.limit(options.limit)
        return query

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find(
        self, conditions: Mapping[str, Any] | None = None, options: QueryOptions | None = None
    ) -> list[ModelType]:
        """Get every record matching ``conditions``."""
        result = await self.session.execute(self._select(conditions, options))
        return list(result.scalars().all())

    async def find_one(
        self, conditions: Mapping[str, Any] | None = None, options: QueryOptions | None = None
    ) -> ModelType | None:
        """Get the first record matching ``conditions`` or None."""
        query = self._select(conditions, options).limit(1)
        result = await self.session.execute(query)
        return result.scalars().first()

    async def get_by_id(self, id_: IDType) -> ModelType | None:
        result = await self.session.execute(select(self.model).where(self.model.id == id_))
        return result.scalar_one_or_none()

    async def count(self, conditions: Mapping[str, Any] | None = None) -> int:
        query = select(func.count()).select_from(self.model).where(*self.where(conditions))
        result = await self.session.execute(query)
        return result.scalar_one()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, **kwargs: Any) -> ModelType:
        """Create a new record.

        Column defaults are computed in Python, so the flushed instance already
        carries them and no reload is issued.
        """
        try:
            instance = self.model(**kwargs)
            self.session.add(instance)
            await self.session.flush()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        else:
            return instance

    async def create_many(self, items: Sequence[Mapping[str, Any]]) -> list[ModelType]:
        """Create multiple records in one flush."""
        try:
            instances = [self.model(**item) for item in items]
            self.session.add_all(instances)
            await self.session.flush()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        else:
            return instances

    async def update_where(
        self, conditions: Mapping[str, Any], updates: Mapping[str, Any], multi: bool = False
    ) -> int:
        """Apply ``updates`` to the first match, or to every match when ``multi``.

        Returns:
            Number of records updated
        """
        values = self._values(updates)
        clauses = self.where(conditions)
        if not values:
            return 0

        try:
            if multi:
                statement = update(self.model).where(*clauses)
            else:
                # UPDATE ... WHERE id = (SELECT id ... LIMIT 1), a single statement
                first_id = select(self.model.id).where(*clauses).limit(1).correlate(None).scalar_subquery()
                statement = update(self.model).where(self.model.id == first_id)

            result = await self.session.execute(
                statement.values(**values).execution_options(synchronize_session=False)
            )
            await self.session.flush()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        else:
            return result.rowcount

    async def delete_where(self, conditions: Mapping[str, Any]) -> int:
        """Delete every record matching ``conditions``.

        Returns:
            Number deleted
        """
        clauses = self.where(conditions)
        try:
            result = await self.session.execute(
                delete(self.model).where(*clauses).execution_options(synchronize_session=False)
            )
            await self.session.flush()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        else:
            return result.rowcount

    async def soft_delete_where(self, conditions: Mapping[str, Any]) -> int:
        """Stamp ``date_deleted`` on matching records not yet deleted.

        Note:
            Requires 'date_deleted' field on model
        """
        if "date_deleted" not in self.model.__table__.columns:
            msg = f"{self.model.__name__} does not support soft delete (missing 'date_deleted' field)"
            raise QueryError(msg)

        clauses = self.where(conditions)
        try:
            result = await self.session.execute(
                update(self.model)
                .where(*clauses, self.model.date_deleted.is_(None))
                .values(date_deleted=datetime.now(UTC))
                .execution_options(synchronize_session=False)
            )
            await self.session.flush()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        else:
            return result.rowcount

    async def commit(self) -> None:
        """Commit current transaction."""
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()
