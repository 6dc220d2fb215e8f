"""Mixins for SQLAlchemy models."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class CreatedMixin:
    """Mixin to add an immutable creation timestamp column.

    Values are written as aware UTC datetimes. SQLite stores them without an
    offset, so readers pass them through ``as_utc``.
    """

    created = Column(DateTime(timezone=True), default=utcnow, nullable=False)
