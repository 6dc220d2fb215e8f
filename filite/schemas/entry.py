"""Entry schemas."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from filite.models.enums import EntryKind

DEFAULT_MIME_TYPE = "application/octet-stream"


class FileContent(BaseModel):
    """Uploaded bytes and the MIME type to serve them with."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[EntryKind.FILE] = EntryKind.FILE
    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE


class LinkContent(BaseModel):
    """Redirect target."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[EntryKind.LINK] = EntryKind.LINK
    url: str = Field(..., min_length=1)


class TextContent(BaseModel):
    """Plain UTF-8 text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[EntryKind.TEXT] = EntryKind.TEXT
    text: str


EntryContent = Annotated[FileContent | LinkContent | TextContent, Field(discriminator="kind")]


class EntryRecord(BaseModel):
    """A stored entry as handed out by the entry store."""

    model_config = ConfigDict(frozen=True)

    id: str
    owner: str
    created: datetime
    views: int = Field(0, ge=0)
    content: EntryContent

    @property
    def kind(self) -> EntryKind:
        return self.content.kind


class EntryInfo(BaseModel):
    """Entry metadata response."""

    id: str
    owner: str
    kind: EntryKind
    created: datetime
    views: int

    @classmethod
    def from_record(cls, entry: EntryRecord) -> "EntryInfo":
        return cls(
            id=entry.id,
            owner=entry.owner,
            kind=entry.kind,
            created=entry.created,
            views=entry.views,
        )
