"""Enums for model fields."""

from enum import Enum


class EntryKind(str, Enum):
    """Content variant stored in an entry."""

    FILE = "file"
    LINK = "link"
    TEXT = "text"

    @property
    def prefix(self) -> str:
        """Single-letter route prefix used for uploads (``/f``, ``/l``, ``/t``)."""
        return self.value[0]
