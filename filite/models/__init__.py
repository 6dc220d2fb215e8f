"""SQLAlchemy models."""

from filite.models.entry import Entry
from filite.models.user import User

__all__ = [
    "Entry",
    "User",
]
