"""Tests for the entry store."""

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

from filite.models.enums import EntryKind
from filite.schemas.entry import (
    DEFAULT_MIME_TYPE,
    EntryRecord,
    FileContent,
    LinkContent,
    TextContent,
)
from filite.services.entries import EntryStore
from filite.services.ids import IdAllocator


class TestInsert:
    """Tests for insert-if-absent."""

    def test_second_insert_is_rejected(self, entry_store):
        assert entry_store.insert_text("abc123", "alice", "first") is True
        assert entry_store.insert_text("abc123", "bob", "second") is False

        entry = entry_store.get("abc123")
        assert entry.owner == "alice"
        assert entry.content == TextContent(text="first")

    def test_rejected_insert_does_not_touch_views(self, entry_store):
        entry_store.insert_link("lnk", "alice", "https://example.com/")
        entry_store.get("lnk", increment_view=True)
        assert entry_store.insert_file("lnk", "alice", b"data") is False

        entry = entry_store.get("lnk")
        assert entry.views == 1
        assert entry.kind is EntryKind.LINK

    def test_store_stays_usable_after_conflict(self, entry_store):
        entry_store.insert_text("dup", "alice", "a")
        assert entry_store.insert_text("dup", "alice", "b") is False
        assert entry_store.insert_text("other", "alice", "c") is True

    def test_helpers_set_defaults(self, entry_store):
        entry_store.insert_text("txt", "alice", "hello")
        entry = entry_store.get("txt")

        assert entry.views == 0
        created = entry.created
        now = datetime.now(UTC)
        assert created.utcoffset() == timedelta(0)
        assert abs(now - created) < timedelta(minutes=1)

    def test_file_round_trip(self, entry_store):
        entry_store.insert_file("img", "alice", b"\x89PNG\r\n", "image/png")
        entry = entry_store.get("img")
        assert entry.content == FileContent(data=b"\x89PNG\r\n", mime_type="image/png")

    def test_file_default_mime_type(self, entry_store):
        entry_store.insert_file("bin", "alice", b"\x00\x01")
        assert entry_store.get("bin").content.mime_type == DEFAULT_MIME_TYPE

    def test_link_round_trip(self, entry_store):
        entry_store.insert_link("go", "bob", "https://example.com/a?b=c")
        entry = entry_store.get("go")
        assert entry.content == LinkContent(url="https://example.com/a?b=c")
        assert entry.owner == "bob"

    def test_insert_record(self, entry_store):
        record = EntryRecord(
            id="rec",
            owner="alice",
            created=datetime(2024, 1, 2, 3, 4, 5),
            views=7,
            content=TextContent(text="ünïcode ✓"),
        )
        assert entry_store.insert(record) is True
        stored = entry_store.get("rec")
        assert stored.views == 7
        assert stored.content.text == "ünïcode ✓"

    def test_insert_with_fresh_id(self, entry_store):
        allocator = IdAllocator(entry_store)
        entry = entry_store.insert_with_fresh_id("alice", TextContent(text="hi"), allocator, 8)
        assert len(entry.id) == 8
        stored = entry_store.get(entry.id)
        assert stored.content == entry.content
        assert stored.owner == "alice"


class TestGet:
    """Tests for plain and counted reads."""

    def test_missing_entry(self, entry_store):
        assert entry_store.get("nothere") is None
        assert entry_store.get("nothere", increment_view=True) is None
        assert entry_store.exists("nothere") is False

    def test_plain_read_does_not_count(self, entry_store):
        entry_store.insert_text("t", "alice", "x")
        entry_store.get("t")
        entry_store.get("t")
        assert entry_store.get("t").views == 0

    def test_counted_read_increments(self, entry_store):
        entry_store.insert_text("t", "alice", "x")
        assert entry_store.get("t", increment_view=True).views == 1
        assert entry_store.get("t", increment_view=True).views == 2
        assert entry_store.get("t").views == 2

    def test_concurrent_counted_reads_lose_no_views(self, database, entry_store):
        entry_store.insert_text("hot", "alice", "hello")
        entry_store.get("hot", increment_view=True)
        start = entry_store.get("hot").views
        n = 40

        def read(_):
            with database.session() as db:
                return EntryStore(db).get("hot", increment_view=True)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(read, range(n)))

        assert all(result is not None for result in results)
        # Every read saw its own increment
        assert sorted(result.views for result in results) == list(range(start + 1, start + n + 1))
        assert entry_store.get("hot").views == start + n


class TestDelete:
    """Tests for ownership-checked deletes."""

    def test_owner_can_delete(self, entry_store, users):
        entry_store.insert_text("mine", "alice", "x")
        deleted = entry_store.delete("mine", users["alice"])
        assert deleted is not None
        assert deleted.content == TextContent(text="x")
        assert entry_store.get("mine") is None

    def test_other_user_cannot_delete(self, entry_store, users):
        entry_store.insert_text("mine", "alice", "x")
        assert entry_store.delete("mine", users["bob"]) is None
        assert entry_store.get("mine") is not None

    def test_admin_can_delete_any(self, entry_store, users):
        entry_store.insert_text("mine", "alice", "x")
        assert entry_store.delete("mine", users["root"]).owner == "alice"
        assert entry_store.exists("mine") is False

    def test_missing_entry(self, entry_store, users):
        assert entry_store.delete("ghost", users["root"]) is None

    def test_delete_twice(self, entry_store, users):
        entry_store.insert_text("once", "alice", "x")
        assert entry_store.delete("once", users["alice"]) is not None
        assert entry_store.delete("once", users["alice"]) is None

    def test_id_reusable_after_delete(self, entry_store, users):
        entry_store.insert_text("reuse", "alice", "old")
        entry_store.delete("reuse", users["alice"])
        assert entry_store.insert_text("reuse", "bob", "new") is True
        assert entry_store.get("reuse").owner == "bob"


class TestListEntries:
    """Tests for EntryStore.list_entries."""

    def test_empty(self, entry_store):
        assert entry_store.list_entries() == []

    def test_oldest_first(self, entry_store):
        for entry_id in ("b", "a", "c"):
            entry_store.insert_text(entry_id, "alice", entry_id)
        assert [entry.id for entry in entry_store.list_entries()] == ["b", "a", "c"]

    def test_kind_filter(self, entry_store):
        entry_store.insert_text("txt", "alice", "x")
        entry_store.insert_link("lnk", "alice", "https://example.com")
        entry_store.insert_file("bin", "alice", b"\x00")

        links = entry_store.list_entries(kind=EntryKind.LINK)
        assert [entry.id for entry in links] == ["lnk"]
        assert links[0].content == LinkContent(url="https://example.com")

    def test_owner_filter(self, entry_store):
        entry_store.insert_text("mine", "alice", "x")
        entry_store.insert_text("his", "bob", "y")
        assert [entry.id for entry in entry_store.list_entries(owner="bob")] == ["his"]

    def test_limit_and_offset(self, entry_store):
        for i in range(5):
            entry_store.insert_text(f"e{i}", "alice", str(i))
        assert [entry.id for entry in entry_store.list_entries(limit=2)] == ["e0", "e1"]
        assert [entry.id for entry in entry_store.list_entries(limit=2, offset=3)] == ["e3", "e4"]

    def test_does_not_count_views(self, entry_store):
        entry_store.insert_text("quiet", "alice", "x")
        entry_store.list_entries()
        assert entry_store.get("quiet").views == 0

    def test_created_is_utc(self, entry_store):
        entry_store.insert_text("when", "alice", "x")
        assert entry_store.list_entries()[0].created.utcoffset() == timedelta(0)


def test_end_to_end_scenario(entry_store, users):
    """Insert, read, count, refuse a foreign delete, then delete as owner."""
    assert entry_store.insert_text("e2e", "alice", "hello")

    entry = entry_store.get("e2e", increment_view=False)
    assert entry.views == 0

    entry = entry_store.get("e2e", increment_view=True)
    assert entry.views == 1
    assert entry.content.text == "hello"

    assert entry_store.delete("e2e", users["bob"]) is None
    assert entry_store.get("e2e") is not None

    assert entry_store.delete("e2e", users["alice"]) is not None
    assert entry_store.get("e2e") is None
