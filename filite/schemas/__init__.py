"""Pydantic schemas for the store core and API responses."""

from filite.schemas.auth import UserRecord, UserResponse
from filite.schemas.entry import (
    EntryContent,
    EntryInfo,
    EntryRecord,
    FileContent,
    LinkContent,
    TextContent,
)
from filite.schemas.hashing import HashParams

__all__ = [
    "HashParams",
    "UserRecord",
    "UserResponse",
    "EntryContent",
    "EntryInfo",
    "EntryRecord",
    "FileContent",
    "LinkContent",
    "TextContent",
]
