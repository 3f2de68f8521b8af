"""Local durable store for collections, items and photo assets.

This module provides:
- LocalStore: SQLite-based on-device store

Architecture:
    Collections are stored as JSON documents keyed by id, items embedded.
    Photo assets are stored as two blobs per item (original and display)
    written in a single transaction. A key-value table holds the seed
    version, the last sync time, and the queues of collections and photo
    resolutions whose remote write is still pending.

    Nothing in this module touches the network.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from curiosync.client.sync.merge import has_local_only_data
from curiosync.core.models import Collection
from curiosync.core.types import LocalStoreError, ValidationError

logger = logging.getLogger(__name__)

ASSET_KINDS = ("original", "display")


def _require_id(value: str | None, what: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{what} is missing an id")
    return value


class LocalStore:
    """SQLite-based local store for the sync client."""

    def __init__(self, db_path: Path) -> None:
        """Open (or create) the local store database.

        Args:
            db_path: Path to SQLite database file.
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        # Lock for thread-safe database access
        self._lock = threading.RLock()

        self._conn = sqlite3.connect(
            str(self._db_path),
            check_same_thread=False,
            isolation_level=None,  # Autocommit mode, explicit transactions below
        )
        self._conn.row_factory = sqlite3.Row

        self._conn.execute("PRAGMA journal_mode=WAL")

        self._create_tables()

    def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS collections (
                id TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                updated_at TEXT
            );

            -- One row per resolution, keyed by item id
            CREATE TABLE IF NOT EXISTS assets (
                item_id TEXT NOT NULL,
                kind TEXT NOT NULL,
                data BLOB NOT NULL,
                PRIMARY KEY (item_id, kind)
            );

            -- Key-value sync state
            CREATE TABLE IF NOT EXISTS sync_state (
                key TEXT PRIMARY KEY,
                value TEXT
            );

            -- Collections whose remote write has not succeeded yet
            CREATE TABLE IF NOT EXISTS pending_sync (
                collection_id TEXT PRIMARY KEY,
                queued_at REAL NOT NULL
            );

            -- Photo resolutions whose upload gave up
            CREATE TABLE IF NOT EXISTS pending_assets (
                item_id TEXT NOT NULL,
                kind TEXT NOT NULL,
                collection_id TEXT NOT NULL,
                queued_at REAL NOT NULL,
                PRIMARY KEY (item_id, kind)
            );
        """)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> LocalStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements atomically; any failure rolls everything back."""
        with self._lock:
            try:
                self._conn.execute("BEGIN IMMEDIATE")
                yield self._conn
                self._conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback()
                raise LocalStoreError(f"Local store write failed: {e}") from e
            except BaseException:
                self._rollback()
                raise

    def _rollback(self) -> None:
        # BEGIN itself may have failed (e.g. database locked)
        if self._conn.in_transaction:
            self._conn.execute("ROLLBACK")

    def _execute(self, sql: str, params: tuple[object, ...] = ()) -> list[sqlite3.Row]:
        """Run one statement in autocommit mode and fetch its rows.

        Raises:
            LocalStoreError: SQLite failed.
        """
        try:
            with self._lock:
                return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise LocalStoreError(f"Local store operation failed: {e}") from e

    # === Collections ===

    def get_local_collections(self) -> list[Collection]:
        """Read every collection held locally.

        Returns:
            Collections in insertion order.
        """
        rows = self._execute("SELECT payload FROM collections ORDER BY rowid")
        return [Collection.from_dict(json.loads(row["payload"])) for row in rows]

    def get_collection(self, collection_id: str) -> Collection | None:
        """Get one collection by id."""
        rows = self._execute(
            "SELECT payload FROM collections WHERE id = ?",
            (collection_id,),
        )
        if not rows:
            return None
        return Collection.from_dict(json.loads(rows[0]["payload"]))

    def save_collection(self, collection: Collection) -> None:
        """Insert or replace one collection.

        Raises:
            ValidationError: If the collection has no id.
        """
        _require_id(collection.id, "Collection")
        with self._transaction() as conn:
            self._put(conn, collection)
        logger.debug(f"Saved collection {collection.id} locally")

    def save_all_collections(self, collections: Iterable[Collection]) -> None:
        """Replace the whole store content with exactly ``collections``.

        Raises:
            ValidationError: If any collection has no id (nothing is written).
        """
        collections = list(collections)
        for collection in collections:
            _require_id(collection.id, "Collection")
        with self._transaction() as conn:
            conn.execute("DELETE FROM collections")
            for collection in collections:
                self._put(conn, collection)
        logger.debug(f"Replaced local store with {len(collections)} collections")

    def delete_collection(self, collection_id: str) -> None:
        """Remove a collection from the local store."""
        with self._transaction() as conn:
            conn.execute("DELETE FROM collections WHERE id = ?", (collection_id,))
            conn.execute("DELETE FROM pending_sync WHERE collection_id = ?", (collection_id,))

    @staticmethod
    def _put(conn: sqlite3.Connection, collection: Collection) -> None:
        conn.execute(
            """
            INSERT INTO collections (id, payload, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                payload = excluded.payload,
                updated_at = excluded.updated_at
            """,
            (collection.id, json.dumps(collection.to_dict()), collection.updated_at),
        )

    def has_local_only_data(self) -> bool:
        """Check if any stored collection has never been synced."""
        return has_local_only_data(self.get_local_collections())

    # === Assets ===

    def save_asset(
        self,
        collection_id: str,
        item_id: str,
        original: bytes,
        display: bytes,
    ) -> None:
        """Store both resolutions of an item photo atomically.

        Args:
            collection_id: Owning collection (kept for symmetry with the
                remote path layout, assets are keyed by item id).
            item_id: Item the photo belongs to.
            original: Full-resolution image bytes.
            display: Display/thumbnail image bytes.

        Raises:
            ValidationError: If the item id is missing.
        """
        _require_id(item_id, "Asset")
        with self._transaction() as conn:
            for kind, data in zip(ASSET_KINDS, (original, display), strict=True):
                conn.execute(
                    "INSERT OR REPLACE INTO assets (item_id, kind, data) VALUES (?, ?, ?)",
                    (item_id, kind, sqlite3.Binary(data)),
                )
        logger.debug(f"Saved asset {collection_id}/{item_id} locally")

    def get_asset(self, item_id: str, kind: str = "display") -> bytes | None:
        """Read one resolution of an item photo."""
        if kind not in ASSET_KINDS:
            raise ValueError(f"Unknown asset kind: {kind}")
        rows = self._execute(
            "SELECT data FROM assets WHERE item_id = ? AND kind = ?",
            (item_id, kind),
        )
        return bytes(rows[0]["data"]) if rows else None

    def delete_asset(self, item_id: str) -> None:
        """Remove both resolutions of an item photo and any queued upload."""
        with self._transaction() as conn:
            conn.execute("DELETE FROM assets WHERE item_id = ?", (item_id,))
            conn.execute("DELETE FROM pending_assets WHERE item_id = ?", (item_id,))

    def list_asset_ids(self) -> list[str]:
        """List item ids that have at least one stored blob."""
        rows = self._execute("SELECT DISTINCT item_id FROM assets ORDER BY item_id")
        return [row["item_id"] for row in rows]

    def cleanup_orphaned_assets(self, collections: Iterable[Collection] | None) -> int:
        """Delete blobs whose item no longer exists in ``collections``.

        Args:
            collections: Current collections; an empty list removes every blob.

        Returns:
            Number of item ids whose blobs were removed.

        Raises:
            ValidationError: If ``collections`` is None.
        """
        if collections is None:
            raise ValidationError("cleanup_orphaned_assets requires a collection list")
        live_ids = {item.id for c in collections for item in c.items}
        orphans = [item_id for item_id in self.list_asset_ids() if item_id not in live_ids]
        if not orphans:
            return 0
        with self._transaction() as conn:
            conn.executemany(
                "DELETE FROM assets WHERE item_id = ?",
                [(item_id,) for item_id in orphans],
            )
            conn.executemany(
                "DELETE FROM pending_assets WHERE item_id = ?",
                [(item_id,) for item_id in orphans],
            )
        logger.info(f"Removed {len(orphans)} orphaned assets")
        return len(orphans)

    # === Pending remote writes ===

    def add_pending(self, collection_id: str) -> None:
        """Queue a collection whose remote write failed."""
        self._execute(
            "INSERT OR REPLACE INTO pending_sync (collection_id, queued_at) VALUES (?, ?)",
            (collection_id, time.time()),
        )

    def list_pending(self) -> list[str]:
        """List queued collection ids, oldest first."""
        rows = self._execute(
            "SELECT collection_id FROM pending_sync ORDER BY queued_at, collection_id"
        )
        return [row["collection_id"] for row in rows]

    def remove_pending(self, collection_id: str) -> None:
        """Drop a collection from the pending queue."""
        self._execute("DELETE FROM pending_sync WHERE collection_id = ?", (collection_id,))

    def add_pending_asset(self, collection_id: str, item_id: str, kind: str) -> None:
        """Queue one photo resolution whose upload gave up."""
        if kind not in ASSET_KINDS:
            raise ValueError(f"Unknown asset kind: {kind}")
        self._execute(
            """
            INSERT OR REPLACE INTO pending_assets (item_id, kind, collection_id, queued_at)
            VALUES (?, ?, ?, ?)
            """,
            (item_id, kind, collection_id, time.time()),
        )

    def list_pending_assets(self) -> list[tuple[str, str, str]]:
        """List queued uploads as (collection_id, item_id, kind), oldest first."""
        rows = self._execute(
            """
            SELECT collection_id, item_id, kind FROM pending_assets
            ORDER BY queued_at, item_id, kind
            """
        )
        return [(row["collection_id"], row["item_id"], row["kind"]) for row in rows]

    def remove_pending_asset(self, item_id: str, kind: str) -> None:
        """Drop one photo resolution from the upload queue."""
        self._execute(
            "DELETE FROM pending_assets WHERE item_id = ? AND kind = ?",
            (item_id, kind),
        )

    # === Sync state ===

    def get_state(self, key: str) -> str | None:
        """Get a sync state value."""
        rows = self._execute("SELECT value FROM sync_state WHERE key = ?", (key,))
        return rows[0]["value"] if rows else None

    def set_state(self, key: str, value: str) -> None:
        """Set a sync state value."""
        self._execute(
            "INSERT OR REPLACE INTO sync_state (key, value) VALUES (?, ?)",
            (key, value),
        )

    def get_seed_version(self) -> int:
        """Get the version of the seed data already written (0 if never)."""
        value = self.get_state("seed_version")
        return int(value) if value else 0

    def set_seed_version(self, version: int) -> None:
        """Record the version of the seed data written."""
        self.set_state("seed_version", str(version))

    def get_last_sync_at(self) -> float | None:
        """Get timestamp of last successful sync."""
        value = self.get_state("last_sync_at")
        return float(value) if value else None

    def set_last_sync_at(self, timestamp: float) -> None:
        """Set timestamp of last successful sync."""
        self.set_state("last_sync_at", str(timestamp))
