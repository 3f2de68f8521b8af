"""Sync orchestrator driving load cycles and dual writes.

This module provides:
- Identity: The authenticated user a cycle runs for
- SyncContext: Explicitly constructed holder of both store adapters
- LoadResult: What a load cycle hands back to the presentation layer
- SyncOrchestrator: Load/merge/persist lifecycle and dual-write operations

Load cycle:
    IDLE -> LOADING -> READY     local (+ remote, merged) snapshot available
                    -> DEGRADED  remote fetch failed, local snapshot kept

Dual writes always hit the local store first. The remote leg is
best-effort: its failures are logged, reported through the status callback
and queued for a later retry, never raised to the caller and never rolled
back locally.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from curiosync.client.api import asset_path
from curiosync.client.seed import CURRENT_SEED_VERSION, initial_collections
from curiosync.client.sync.merge import (
    find_malformed_timestamps,
    has_local_only_data,
    merge_collections,
)
from curiosync.client.sync.retry import RetryPolicy, upload_with_retry
from curiosync.core.models import Collection, Item, utc_now_iso
from curiosync.core.types import (
    LoadState,
    RemoteWriteError,
    StatusKey,
    StatusTone,
    ValidationError,
)

if TYPE_CHECKING:
    from curiosync.client.api import RemoteStore
    from curiosync.client.state import LocalStore

logger = logging.getLogger(__name__)

SYNC_PAUSED_MESSAGE = "Unable to sync with the cloud. Check your connection and settings."

StatusCallback = Callable[[StatusKey, StatusTone], None]


@dataclass(frozen=True)
class Identity:
    """Authenticated user of a sync cycle."""

    user_id: str
    is_admin: bool = False


@dataclass
class SyncContext:
    """Adapters and policies a SyncOrchestrator works with.

    Attributes:
        local: On-device store.
        remote: Cloud store, or None when no backend is configured.
        retry_policy: Bounds for asset upload retries.
        seed_factory: Builds the first-run collections.
        seed_version: Current version of the seed data.
    """

    local: LocalStore
    remote: RemoteStore | None = None
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    seed_factory: Callable[[], list[Collection]] = initial_collections
    seed_version: int = CURRENT_SEED_VERSION


@dataclass
class LoadResult:
    """Outcome of one load cycle.

    Attributes:
        collections: Collections to display.
        load_error: Human-readable reason the cycle is degraded, if it is.
        has_local_import: Local store holds data never synced to the cloud.
        state: READY or DEGRADED.
        stale: A newer cycle superseded this one; the result was not applied.
    """

    collections: list[Collection]
    load_error: str | None = None
    has_local_import: bool = False
    state: LoadState = LoadState.READY
    stale: bool = False


class SyncOrchestrator:
    """Drives load cycles and dual writes for one user session.

    Usage:
        context = SyncContext(local=LocalStore(path), remote=RemoteStore(config))
        orchestrator = SyncOrchestrator(context, on_status=show_status)

        result = orchestrator.load(Identity("user-1"))
        orchestrator.save_collection(collection, Identity("user-1"))
    """

    def __init__(
        self,
        context: SyncContext,
        on_status: StatusCallback | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            context: Store adapters and policies.
            on_status: Optional callback (message key, tone) for user notices.
        """
        self._ctx = context
        self._on_status = on_status
        self._state = LoadState.IDLE
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def state(self) -> LoadState:
        """State of the latest load cycle."""
        return self._state

    @property
    def context(self) -> SyncContext:
        """Store adapters and policies."""
        return self._ctx

    def _emit(self, key: StatusKey, tone: StatusTone) -> None:
        if self._on_status:
            self._on_status(key, tone)

    # === Cycle bookkeeping ===

    def _begin_cycle(self) -> int:
        with self._lock:
            self._generation += 1
            self._state = LoadState.LOADING
            return self._generation

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def cancel(self) -> None:
        """Supersede any cycle in flight; its result will be discarded."""
        with self._lock:
            self._generation += 1
            if self._state == LoadState.LOADING:
                self._state = LoadState.IDLE

    def _finish(
        self,
        generation: int,
        result: LoadResult,
        status: tuple[StatusKey, StatusTone] | None = None,
    ) -> LoadResult:
        with self._lock:
            if generation != self._generation:
                result.stale = True
            else:
                self._state = result.state
        if result.stale:
            logger.info("Discarding result of a superseded sync cycle")
            return result
        if status:
            self._emit(*status)
        return result

    def _stale(self, collections: list[Collection]) -> LoadResult:
        logger.info("Discarding result of a superseded sync cycle")
        return LoadResult(collections=collections, stale=True)

    @staticmethod
    def _warn_malformed(source: str, collections: Sequence[Collection]) -> None:
        bad = find_malformed_timestamps(collections)
        bad += find_malformed_timestamps(item for c in collections for item in c.items)
        if bad:
            logger.warning(
                f"{len(bad)} {source} records have malformed timestamps, "
                f"treated as oldest: {', '.join(bad[:10])}"
            )

    # === Load ===

    def load(
        self,
        identity: Identity | None = None,
        fallback: Iterable[Collection] = (),
    ) -> LoadResult:
        """Run one load cycle.

        Args:
            identity: Signed-in user, or None when signed out.
            fallback: Sample collections shown to a signed-out user with an
                empty local store.

        Returns:
            LoadResult for the presentation layer.

        Raises:
            LocalStoreError: The local store could not be read or written.
        """
        generation = self._begin_cycle()
        local = self._ctx.local.get_local_collections()
        self._warn_malformed("local", local)

        if self._ctx.remote is None or identity is None:
            collections = local
            if not local and identity is None:
                collections = list(fallback)
            logger.info(f"Loaded {len(collections)} collections without cloud sync")
            return self._finish(
                generation,
                LoadResult(
                    collections=collections,
                    has_local_import=has_local_only_data(local),
                ),
            )

        try:
            remote = self._ctx.remote.fetch_cloud_collections(
                user_id=identity.user_id, include_public=True
            )
        except Exception as e:
            logger.warning(f"Cloud fetch failed, using local collections: {e}")
            return self._finish(
                generation,
                LoadResult(
                    collections=local,
                    load_error=SYNC_PAUSED_MESSAGE,
                    state=LoadState.DEGRADED,
                ),
                (StatusKey.SYNC_PAUSED, StatusTone.ERROR),
            )

        self._warn_malformed("cloud", remote)
        local_only = has_local_only_data(local, remote)
        merged = merge_collections(local, remote)

        if not self._is_current(generation):
            return self._stale(merged)

        if not local and not remote and identity.is_admin:
            merged = self._seed(identity)

        if not local_only:
            self._ctx.local.save_all_collections(merged)
        self._ctx.local.set_last_sync_at(time.time())

        logger.info(
            f"Synced {len(merged)} collections "
            f"({len(local)} local, {len(remote)} cloud, local-only data: {local_only})"
        )
        return self._finish(
            generation,
            LoadResult(collections=merged, has_local_import=local_only),
            (StatusKey.SYNCED, StatusTone.SUCCESS) if merged else None,
        )

    def _seed(self, identity: Identity) -> list[Collection]:
        """Write the first-run collections if the stored seed is outdated."""
        stored = self._ctx.local.get_seed_version()
        if stored >= self._ctx.seed_version:
            return []

        logger.info(f"Seeding initial collections (seed v{stored} -> v{self._ctx.seed_version})")
        seeded = [
            replace(c, owner_id=identity.user_id, is_public=True)
            for c in self._ctx.seed_factory()
        ]
        for collection in seeded:
            self.save_collection(collection, identity)
        self._ctx.local.set_seed_version(self._ctx.seed_version)
        return seeded

    # === Dual writes ===

    def _push(
        self,
        remote: RemoteStore,
        collection: Collection,
        identity: Identity,
    ) -> Collection:
        """Upsert a collection remotely and record sync evidence locally."""
        remote.push_collection(collection, identity.user_id)
        if collection.owner_id != identity.user_id:
            collection = replace(collection, owner_id=identity.user_id)
            self._ctx.local.save_collection(collection)
        self._ctx.local.remove_pending(collection.id)
        return collection

    def save_collection(
        self,
        collection: Collection,
        identity: Identity | None = None,
    ) -> None:
        """Save a collection locally, then upsert it remotely (best-effort).

        Raises:
            ValidationError: The collection has no id (nothing is written).
            LocalStoreError: The local write failed (no remote write attempted).
        """
        self._ctx.local.save_collection(collection)

        if self._ctx.remote is None or identity is None:
            return
        if collection.owner_id and collection.owner_id != identity.user_id:
            logger.debug(f"Not pushing collection {collection.id} owned by another user")
            return

        try:
            self._push(self._ctx.remote, collection, identity)
        except Exception as e:
            logger.warning(f"Cloud save of collection {collection.id} failed, queued: {e}")
            self._ctx.local.add_pending(collection.id)
            self._emit(StatusKey.SYNC_ERROR, StatusTone.ERROR)

    def save_item(self, item: Item, identity: Identity | None = None) -> Collection:
        """Insert or replace an item in its collection, then save the collection.

        Returns:
            The updated collection.

        Raises:
            ValidationError: The item has no id or its collection is unknown.
        """
        if not item.id:
            raise ValidationError("Item is missing an id")
        collection = self._ctx.local.get_collection(item.collection_id)
        if collection is None:
            raise ValidationError(f"Unknown collection: {item.collection_id}")

        now = utc_now_iso()
        item = replace(item, created_at=item.created_at or now, updated_at=now)
        items = list(collection.items)
        for index, existing in enumerate(items):
            if existing.id == item.id:
                items[index] = item
                break
        else:
            items.append(item)

        updated = replace(collection, items=items, updated_at=now)
        self.save_collection(updated, identity)
        return updated

    def save_asset(
        self,
        collection_id: str,
        item_id: str,
        original: bytes,
        display: bytes,
        identity: Identity | None = None,
    ) -> None:
        """Save both photo resolutions locally, then upload each remotely.

        Each resolution is retried on its own, so a transient failure of one
        does not re-upload the other. A resolution that exhausts its retries
        is queued for ``sync_pending``.

        Raises:
            ValidationError: The item id is missing (nothing is written).
            LocalStoreError: The local write failed.
        """
        self._ctx.local.save_asset(collection_id, item_id, original, display)

        if self._ctx.remote is None or identity is None:
            return

        remote = self._ctx.remote
        failed: list[str] = []
        for kind, blob in (("original", original), ("display", display)):
            path = asset_path(identity.user_id, collection_id, item_id, kind)
            try:
                upload_with_retry(
                    lambda path=path, blob=blob: remote.upload_asset(path, blob),
                    self._ctx.retry_policy,
                    label=path,
                )
            except RemoteWriteError as e:
                logger.warning(f"Giving up on upload of {path}, queued: {e}")
                self._ctx.local.add_pending_asset(collection_id, item_id, kind)
                failed.append(path)
            else:
                self._ctx.local.remove_pending_asset(item_id, kind)

        if failed:
            self._emit(StatusKey.UPLOAD_FAILED, StatusTone.ERROR)

    def sync_pending(self, identity: Identity | None) -> int:
        """Retry remote writes queued by earlier failures.

        Queued collections are pushed first, then queued photo uploads are
        sent once each from the locally stored blobs.

        Returns:
            Number of collections and photo resolutions written.
        """
        if self._ctx.remote is None or identity is None:
            return 0

        synced = 0
        for collection_id in self._ctx.local.list_pending():
            collection = self._ctx.local.get_collection(collection_id)
            if collection is None:
                self._ctx.local.remove_pending(collection_id)
                continue
            try:
                self._push(self._ctx.remote, collection, identity)
            except Exception as e:
                logger.warning(f"Pending collection {collection_id} still not synced: {e}")
                continue
            synced += 1

        for collection_id, item_id, kind in self._ctx.local.list_pending_assets():
            blob = self._ctx.local.get_asset(item_id, kind)
            if blob is None:
                self._ctx.local.remove_pending_asset(item_id, kind)
                continue
            path = asset_path(identity.user_id, collection_id, item_id, kind)
            try:
                self._ctx.remote.upload_asset(path, blob)
            except Exception as e:
                logger.warning(f"Pending upload {path} still not synced: {e}")
                continue
            self._ctx.local.remove_pending_asset(item_id, kind)
            synced += 1

        if synced:
            logger.info(f"Synced {synced} pending writes")
            self._emit(StatusKey.PENDING_SYNCED, StatusTone.SUCCESS)
        return synced
