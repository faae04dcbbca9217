"""
Base declarative class and mixins for SQLAlchemy models.

This module contains only the domain model base class and common mixins.
Database connection logic lives in product_api.core.database
"""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import DeclarativeBase


def utc_now() -> datetime:
    """Returns current UTC time with timezone awareness."""
    return datetime.now(UTC)


def generate_id() -> str:
    """Opaque storage identifier (32 hex chars)."""
    return uuid4().hex


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""


class TimestampMixin:
    """Mixin adding creation, modification and soft-deletion timestamps.

    ``date_deleted`` stays NULL until a record is soft deleted.
    """

    date_created = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    date_modified = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)
    date_deleted = Column(DateTime(timezone=True), nullable=True, default=None)
