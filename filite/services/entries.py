"""Entry store: insert-if-absent, counted reads and owner-checked deletes."""

import logging

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from filite.exceptions import AllocationError
from filite.models.entry import Entry
from filite.models.enums import EntryKind
from filite.models.mixins import as_utc, utcnow
from filite.schemas.auth import UserRecord
from filite.schemas.entry import (
    DEFAULT_MIME_TYPE,
    EntryContent,
    EntryRecord,
    FileContent,
    LinkContent,
    TextContent,
)
from filite.services.ids import IdAllocator

logger = logging.getLogger(__name__)

ENTRY_COLUMNS = (
    Entry.id,
    Entry.owner,
    Entry.created,
    Entry.views,
    Entry.kind,
    Entry.content,
    Entry.mime_type,
)


def content_to_columns(content: EntryContent) -> dict:
    """Flatten a content variant into the kind/content/mime_type columns."""
    if isinstance(content, FileContent):
        return {"kind": EntryKind.FILE, "content": content.data, "mime_type": content.mime_type}
    if isinstance(content, LinkContent):
        return {"kind": EntryKind.LINK, "content": content.url.encode("utf-8"), "mime_type": None}
    if isinstance(content, TextContent):
        return {"kind": EntryKind.TEXT, "content": content.text.encode("utf-8"), "mime_type": None}
    raise TypeError(f"Unknown entry content: {type(content).__name__}")


def content_from_row(row) -> EntryContent:
    """Rebuild the content variant stored in a row."""
    kind = EntryKind(row.kind)
    if kind is EntryKind.FILE:
        return FileContent(data=row.content, mime_type=row.mime_type or DEFAULT_MIME_TYPE)
    if kind is EntryKind.LINK:
        return LinkContent(url=row.content.decode("utf-8"))
    if kind is EntryKind.TEXT:
        return TextContent(text=row.content.decode("utf-8"))
    raise ValueError(f"Unknown entry kind: {kind}")


def record_from_row(row) -> EntryRecord:
    """Convert an ORM row or a RETURNING row into an entry record."""
    return EntryRecord(
        id=row.id,
        owner=row.owner,
        created=as_utc(row.created),
        views=row.views,
        content=content_from_row(row),
    )


class EntryStore:
    """Entry operations scoped to one session.

    Every mutating operation is a single statement so that concurrent
    sessions cannot lose an update to a read-then-write race.
    """

    def __init__(self, db: Session):
        self.db = db

    def _fetch(self, entry_id: str) -> Entry | None:
        stmt = select(Entry).where(Entry.id == entry_id).execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def exists(self, entry_id: str) -> bool:
        """Check if an entry with this id is present."""
        stmt = select(Entry.id).where(Entry.id == entry_id)
        return self.db.execute(stmt).first() is not None

    def get(self, entry_id: str, increment_view: bool = False) -> EntryRecord | None:
        """Fetch an entry, optionally counting the read as a view.

        With ``increment_view`` the increment and the read are one
        ``UPDATE ... RETURNING`` statement.
        """
        if not increment_view:
            row = self._fetch(entry_id)
            return record_from_row(row) if row is not None else None

        stmt = (
            update(Entry)
            .where(Entry.id == entry_id)
            .values(views=Entry.views + 1)
            .returning(*ENTRY_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        row = self.db.execute(stmt).first()
        if row is None:
            self.db.rollback()
            return None

        entry = record_from_row(row)
        self.db.commit()
        return entry

    def list_entries(
        self,
        limit: int = 100,
        offset: int = 0,
        kind: EntryKind | None = None,
        owner: str | None = None,
    ) -> list[EntryRecord]:
        """List entries oldest first, optionally of one kind or owner.

        Listing does not count views.
        """
        stmt = (
            select(*ENTRY_COLUMNS)
            .order_by(Entry.created, Entry.id)
            .limit(limit)
            .offset(offset)
        )
        if kind is not None:
            stmt = stmt.where(Entry.kind == kind)
        if owner is not None:
            stmt = stmt.where(Entry.owner == owner)
        return [record_from_row(row) for row in self.db.execute(stmt)]

    def insert(self, entry: EntryRecord) -> bool:
        """Insert an entry unless its id is already taken.

        Returns ``False`` without touching the stored entry when the id
        exists; the primary key constraint is the test-and-set.
        """
        stmt = insert(Entry).values(
            id=entry.id,
            owner=entry.owner,
            created=entry.created,
            views=entry.views,
            **content_to_columns(entry.content),
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.debug(f"Entry {entry.id} already exists, insert rejected")
            return False
        return True

    def _new_record(self, entry_id: str, owner: str, content: EntryContent) -> EntryRecord:
        return EntryRecord(id=entry_id, owner=owner, created=utcnow(), views=0, content=content)

    def insert_file(
        self, entry_id: str, owner: str, data: bytes, mime_type: str = DEFAULT_MIME_TYPE
    ) -> bool:
        """Insert a file entry."""
        content = FileContent(data=data, mime_type=mime_type)
        return self.insert(self._new_record(entry_id, owner, content))

    def insert_link(self, entry_id: str, owner: str, url: str) -> bool:
        """Insert a redirect entry."""
        return self.insert(self._new_record(entry_id, owner, LinkContent(url=url)))

    def insert_text(self, entry_id: str, owner: str, text: str) -> bool:
        """Insert a text entry."""
        return self.insert(self._new_record(entry_id, owner, TextContent(text=text)))

    def insert_with_fresh_id(
        self,
        owner: str,
        content: EntryContent,
        allocator: IdAllocator,
        length: int,
        timeout: float | None = None,
    ) -> EntryRecord:
        """Allocate an unused id and insert under it, retrying lost races."""
        for _ in range(allocator.max_attempts):
            entry = self._new_record(allocator.allocate(length, timeout=timeout), owner, content)
            if self.insert(entry):
                logger.info(f"Created {entry.kind.value} entry {entry.id} for {owner}")
                return entry
            logger.debug(f"Lost insert race for {entry.id}, allocating again")
        raise AllocationError(
            f"Could not insert a fresh entry after {allocator.max_attempts} attempts"
        )

    def delete(self, entry_id: str, requester: UserRecord) -> EntryRecord | None:
        """Delete an entry if ``requester`` owns it or is an admin.

        Returns the removed entry, or ``None`` when it is absent or the
        requester is not allowed to remove it. Nothing is removed in the
        latter case.
        """
        row = self._fetch(entry_id)
        if row is None:
            return None

        entry = record_from_row(row)
        if not requester.can_delete(entry.owner):
            logger.info(f"User {requester.id} may not delete entry {entry_id} of {entry.owner}")
            self.db.rollback()
            return None

        result = self.db.execute(
            delete(Entry).where(Entry.id == entry_id).execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # Removed by a concurrent request in the meantime
            self.db.rollback()
            return None

        self.db.commit()
        logger.info(f"Entry {entry_id} deleted by {requester.id}")
        return entry

