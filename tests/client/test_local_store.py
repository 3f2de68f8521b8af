"""Tests for the SQLite local store."""

import sqlite3
from pathlib import Path
from unittest.mock import patch

import pytest

from curiosync.client.state import LocalStore
from curiosync.core.models import Collection, Item
from curiosync.core.types import LocalStoreError, ValidationError


@pytest.fixture
def store(tmp_path: Path):
    with LocalStore(tmp_path / "curio.db") as local:
        yield local


def make_collection(id: str, items: list[Item] | None = None, owner_id: str | None = None) -> Collection:
    return Collection(
        id=id,
        template_id="general",
        name=f"Collection {id}",
        items=items or [],
        updated_at="2024-01-01T00:00:00.000Z",
        owner_id=owner_id,
    )


def make_item(id: str, collection_id: str = "col-1") -> Item:
    return Item(id=id, collection_id=collection_id, title=f"Item {id}", created_at="2024-01-01T00:00:00Z")


class TestLocalStoreCreation:
    """Tests for LocalStore initialization."""

    def test_creates_parent_dirs(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "dir" / "curio.db"

        LocalStore(db_path).close()

        assert db_path.exists()

    def test_reopen_preserves_data(self, tmp_path: Path) -> None:
        """Data written before close is visible after reopening."""
        db_path = tmp_path / "curio.db"
        with LocalStore(db_path) as first:
            first.save_collection(make_collection("col-1", [make_item("i1")]))
            first.set_seed_version(3)

        with LocalStore(db_path) as second:
            collections = second.get_local_collections()
            assert [c.id for c in collections] == ["col-1"]
            assert collections[0].items[0].title == "Item i1"
            assert second.get_seed_version() == 3


class TestCollections:
    """Tests for collection persistence."""

    def test_empty_store(self, store: LocalStore) -> None:
        assert store.get_local_collections() == []
        assert store.get_collection("missing") is None

    def test_save_and_get(self, store: LocalStore) -> None:
        collection = make_collection("col-1", [make_item("i1")], owner_id="u1")

        store.save_collection(collection)

        assert store.get_collection("col-1") == collection

    def test_resave_keeps_position(self, store: LocalStore) -> None:
        store.save_collection(make_collection("a"))
        store.save_collection(make_collection("b"))

        renamed = make_collection("a")
        renamed.name = "Renamed"
        store.save_collection(renamed)

        assert [c.name for c in store.get_local_collections()] == ["Renamed", "Collection b"]

    def test_save_rejects_missing_id(self, store: LocalStore) -> None:
        with pytest.raises(ValidationError):
            store.save_collection(make_collection(""))

    def test_save_all_replaces_content(self, store: LocalStore) -> None:
        """save_all_collections leaves exactly the given collections."""
        store.save_collection(make_collection("old"))

        store.save_all_collections([make_collection("x"), make_collection("y")])

        assert [c.id for c in store.get_local_collections()] == ["x", "y"]

    def test_save_all_empty_clears(self, store: LocalStore) -> None:
        store.save_collection(make_collection("old"))

        store.save_all_collections([])

        assert store.get_local_collections() == []

    def test_save_all_invalid_writes_nothing(self, store: LocalStore) -> None:
        store.save_collection(make_collection("keep"))

        with pytest.raises(ValidationError):
            store.save_all_collections([make_collection("x"), make_collection("")])

        assert [c.id for c in store.get_local_collections()] == ["keep"]

    def test_failed_write_rolls_back(self, store: LocalStore) -> None:
        """A database error mid-transaction leaves the previous content."""
        store.save_collection(make_collection("keep"))

        with patch.object(
            LocalStore, "_put", side_effect=[None, sqlite3.OperationalError("disk full")]
        ), pytest.raises(LocalStoreError):
            store.save_all_collections([make_collection("x"), make_collection("y")])

        assert [c.id for c in store.get_local_collections()] == ["keep"]

    def test_delete_collection(self, store: LocalStore) -> None:
        store.save_collection(make_collection("a"))
        store.add_pending("a")

        store.delete_collection("a")

        assert store.get_local_collections() == []
        assert store.list_pending() == []

    def test_has_local_only_data(self, store: LocalStore) -> None:
        assert store.has_local_only_data() is False

        store.save_collection(make_collection("synced", owner_id="u1"))
        assert store.has_local_only_data() is False

        store.save_collection(make_collection("fresh"))
        assert store.has_local_only_data() is True


class TestAssets:
    """Tests for photo asset storage."""

    def test_save_and_get_both_kinds(self, store: LocalStore) -> None:
        store.save_asset("col-1", "i1", b"original-bytes", b"display-bytes")

        assert store.get_asset("i1", "original") == b"original-bytes"
        assert store.get_asset("i1", "display") == b"display-bytes"
        assert store.get_asset("i1") == b"display-bytes"

    def test_missing_asset(self, store: LocalStore) -> None:
        assert store.get_asset("nope") is None

    def test_unknown_kind(self, store: LocalStore) -> None:
        with pytest.raises(ValueError):
            store.get_asset("i1", "thumb")

    def test_save_asset_requires_item_id(self, store: LocalStore) -> None:
        with pytest.raises(ValidationError):
            store.save_asset("col-1", "", b"a", b"b")

    def test_delete_asset(self, store: LocalStore) -> None:
        store.save_asset("col-1", "i1", b"a", b"b")

        store.delete_asset("i1")

        assert store.list_asset_ids() == []


class TestCleanupOrphanedAssets:
    """Tests for cleanup_orphaned_assets."""

    def test_removes_only_orphans(self, store: LocalStore) -> None:
        store.save_asset("col-1", "live", b"a", b"b")
        store.save_asset("col-1", "gone", b"a", b"b")
        collections = [make_collection("col-1", [make_item("live")])]

        removed = store.cleanup_orphaned_assets(collections)

        assert removed == 1
        assert store.list_asset_ids() == ["live"]

    def test_empty_list_removes_everything(self, store: LocalStore) -> None:
        store.save_asset("col-1", "a", b"a", b"b")
        store.save_asset("col-1", "b", b"a", b"b")

        assert store.cleanup_orphaned_assets([]) == 2
        assert store.list_asset_ids() == []

    def test_none_is_rejected(self, store: LocalStore) -> None:
        """Passing None must not be mistaken for an empty list."""
        store.save_asset("col-1", "a", b"a", b"b")

        with pytest.raises(ValidationError):
            store.cleanup_orphaned_assets(None)

        assert store.list_asset_ids() == ["a"]

    def test_nothing_to_remove(self, store: LocalStore) -> None:
        assert store.cleanup_orphaned_assets([make_collection("col-1")]) == 0


class TestSyncState:
    """Tests for seed version, last sync time and the pending queue."""

    def test_seed_version_defaults_to_zero(self, store: LocalStore) -> None:
        assert store.get_seed_version() == 0

        store.set_seed_version(3)

        assert store.get_seed_version() == 3

    def test_last_sync_at(self, store: LocalStore) -> None:
        assert store.get_last_sync_at() is None

        store.set_last_sync_at(1700000000.5)

        assert store.get_last_sync_at() == 1700000000.5

    def test_generic_state(self, store: LocalStore) -> None:
        assert store.get_state("missing") is None

        store.set_state("key", "value")

        assert store.get_state("key") == "value"

    def test_pending_queue(self, store: LocalStore) -> None:
        store.add_pending("a")
        store.add_pending("b")
        store.add_pending("a")

        assert sorted(store.list_pending()) == ["a", "b"]

        store.remove_pending("a")

        assert store.list_pending() == ["b"]

    def test_pending_asset_queue(self, store: LocalStore) -> None:
        store.add_pending_asset("col-1", "i1", "original")
        store.add_pending_asset("col-1", "i1", "display")
        store.add_pending_asset("col-1", "i1", "original")

        assert sorted(store.list_pending_assets()) == [
            ("col-1", "i1", "display"),
            ("col-1", "i1", "original"),
        ]

        store.remove_pending_asset("i1", "original")

        assert store.list_pending_assets() == [("col-1", "i1", "display")]

    def test_pending_asset_unknown_kind(self, store: LocalStore) -> None:
        with pytest.raises(ValueError):
            store.add_pending_asset("col-1", "i1", "thumb")

    def test_deleting_asset_clears_its_queue(self, store: LocalStore) -> None:
        store.save_asset("col-1", "i1", b"a", b"b")
        store.add_pending_asset("col-1", "i1", "display")

        store.delete_asset("i1")

        assert store.list_pending_assets() == []

    def test_cleanup_clears_orphan_queue(self, store: LocalStore) -> None:
        store.save_asset("col-1", "gone", b"a", b"b")
        store.add_pending_asset("col-1", "gone", "original")

        store.cleanup_orphaned_assets([])

        assert store.list_pending_assets() == []


class TestStoreErrors:
    """SQLite failures surface as LocalStoreError."""

    def test_locked_database_on_write(self, tmp_path: Path) -> None:
        """A write lock held by another connection is reported, not leaked."""
        db_path = tmp_path / "curio.db"
        with LocalStore(db_path) as store:
            store._conn.execute("PRAGMA busy_timeout = 100")
            other = sqlite3.connect(str(db_path), isolation_level=None)
            try:
                other.execute("BEGIN IMMEDIATE")

                with pytest.raises(LocalStoreError, match="locked"):
                    store.save_collection(make_collection("a"))

                other.execute("ROLLBACK")
            finally:
                other.close()

            store.save_collection(make_collection("a"))
            assert [c.id for c in store.get_local_collections()] == ["a"]

    @pytest.mark.parametrize(
        "call",
        [
            lambda s: s.get_local_collections(),
            lambda s: s.get_collection("a"),
            lambda s: s.add_pending("a"),
            lambda s: s.list_pending(),
            lambda s: s.remove_pending("a"),
            lambda s: s.list_pending_assets(),
            lambda s: s.get_state("key"),
            lambda s: s.set_state("key", "value"),
            lambda s: s.get_asset("i1"),
            lambda s: s.list_asset_ids(),
        ],
    )
    def test_closed_store_raises_local_store_error(self, tmp_path: Path, call) -> None:
        store = LocalStore(tmp_path / "curio.db")
        store.close()

        with pytest.raises(LocalStoreError):
            call(store)
