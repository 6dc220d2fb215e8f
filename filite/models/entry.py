"""Entry model."""

from sqlalchemy import Column, Enum, Integer, LargeBinary, String

from filite.database import Base
from filite.models.enums import EntryKind
from filite.models.mixins import CreatedMixin


class Entry(Base, CreatedMixin):
    """Stored file, link or text, addressed by its short id."""

    __tablename__ = "entries"

    id = Column(String(64), primary_key=True)
    # Lookup key into users, not a foreign key: entries outlive their owner
    owner = Column(String(64), nullable=False, index=True)
    kind = Column(
        Enum(EntryKind, name="entry_kind", values_callable=lambda kinds: [k.value for k in kinds]),
        nullable=False,
    )
    content = Column(LargeBinary, nullable=False)
    mime_type = Column(String(255), nullable=True)  # files only
    views = Column(Integer, nullable=False, default=0)
